"""Turn orchestration: submit, send, reveal, finalize.

One turn walks a fixed state machine::

    IDLE -> SENDING -> AWAITING_RESPONSE -> ANIMATING -> FINALIZED
                 \\              \\
                  +-> ERROR <----+

The user's message is shown optimistically as a temp entry before the
network call. A successful reply reconciles it in place and is revealed by
the animator; a failed one strips every transient entry and appends one
apology message. Either way the turn ends with no transient messages left.
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from pydantic import ValidationError

from nfrs_assistant.chat.animator import AnimationHandle, ResponseAnimator
from nfrs_assistant.chat.conversation_store import ConversationStore
from nfrs_assistant.chat.message_factory import error_message, new_message_id, send_failure_text
from nfrs_assistant.chat.timeline import MessageTimeline
from nfrs_assistant.client import ChatApiClient
from nfrs_assistant.exceptions import NotFoundError, SendFailedError, ServiceUnavailableError
from nfrs_assistant.models import Message, MessageRole, SendMessageRequest, TransientKind

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    """Phase of the current turn."""

    IDLE = "idle"
    SENDING = "sending"
    AWAITING_RESPONSE = "awaiting_response"
    ANIMATING = "animating"
    FINALIZED = "finalized"
    ERROR = "error"


_TRANSITIONS: dict[TurnState, frozenset[TurnState]] = {
    TurnState.IDLE: frozenset({TurnState.SENDING}),
    TurnState.FINALIZED: frozenset({TurnState.SENDING}),
    TurnState.ERROR: frozenset({TurnState.SENDING}),
    TurnState.SENDING: frozenset({TurnState.AWAITING_RESPONSE, TurnState.ERROR}),
    TurnState.AWAITING_RESPONSE: frozenset({TurnState.ANIMATING, TurnState.ERROR}),
    TurnState.ANIMATING: frozenset({TurnState.FINALIZED}),
}

StateListener = Callable[[TurnState], None]


def conversation_title(first_message: str) -> str:
    """Title for a conversation created implicitly by its first message."""
    return f"Chat about {first_message[:20]}..."


class TurnOrchestrator:
    """Runs user turns against the conversation service."""

    def __init__(
        self,
        client: ChatApiClient,
        store: ConversationStore,
        timeline: MessageTimeline,
        animator: ResponseAnimator,
        turn_lock: asyncio.Lock | None = None,
        language: str = "en",
    ) -> None:
        self._client = client
        self._store = store
        self._timeline = timeline
        self._animator = animator
        self._lock = turn_lock or asyncio.Lock()
        self.language = language
        self.state = TurnState.IDLE
        self.last_error: str | None = None
        self.animation: AnimationHandle | None = None
        self._listeners: list[StateListener] = []

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def submit(self, content: str) -> Message:
        """Run one turn for ``content``.

        Creates a conversation first when none is current. Waits for any
        running turn to finish before starting.

        Returns:
            The finalized assistant message, or the synthesized apology if
            the send failed.

        Raises:
            ValueError: If ``content`` is blank.
            CreateFailedError: If the implicit conversation cannot be created;
                               the timeline is left untouched.
        """
        content = content.strip()
        if not content:
            raise ValueError("Cannot send an empty message")

        async with self._lock:
            if self._store.current is None:
                await self._store.create(conversation_title(content), self.language)
            return await self._run_turn(self._store.current.id, content)

    async def open_conversation(self, conversation_id: int, pending_message: str | None = None) -> list[Message]:
        """Select a conversation, starting a new one if it no longer exists.

        Args:
            conversation_id: Conversation to open.
            pending_message: First message to replay in the replacement
                             conversation when ``conversation_id`` is unknown.

        Returns:
            The timeline's messages after opening.
        """
        try:
            return await self._store.select(conversation_id)
        except NotFoundError:
            logger.warning(f"Conversation {conversation_id} not found, starting a new one")

        title = conversation_title(pending_message) if pending_message else "New Chat"
        await self._store.create(title, self.language)
        if pending_message:
            await self.submit(pending_message)
        return self._timeline.messages

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        """Translate text through the conversation service.

        Raises:
            ServiceUnavailableError: If the service call fails.
        """
        try:
            return await self._client.translate(text, source_language, target_language)
        except ServiceUnavailableError as e:
            self.last_error = e.message
            raise

    async def _run_turn(self, conversation_id: int, content: str) -> Message:
        self.last_error = None
        self._transition(TurnState.SENDING)
        temp = Message(
            id=new_message_id("temp-"),
            conversation_id=conversation_id,
            role=MessageRole.USER,
            content=content,
            transient=TransientKind.TEMP,
        )
        self._timeline.append(temp)

        try:
            try:
                request = SendMessageRequest(conversation_id=conversation_id, content=content, language=self.language)
            except ValidationError as e:
                return self._fail(conversation_id, SendFailedError(f"Invalid message: {e}"))
            self._transition(TurnState.AWAITING_RESPONSE)
            try:
                result = await self._client.send_message(request)
            except ServiceUnavailableError as e:
                return self._fail(conversation_id, SendFailedError(e.message))
            except ValidationError as e:
                return self._fail(conversation_id, SendFailedError(f"Invalid response from assistant: {e}"))
            if not result.content.strip():
                return self._fail(conversation_id, SendFailedError("Empty response from assistant"))

            self._transition(TurnState.ANIMATING)
            confirmed = temp.model_copy(update={"id": new_message_id("user-"), "transient": TransientKind.NONE})
            self._timeline.reconcile_temp(temp.id, confirmed)
            assistant = Message(
                id=new_message_id("assistant-"),
                conversation_id=conversation_id,
                role=MessageRole.ASSISTANT,
                content=result.content,
                sources=result.sources,
                experts=result.experts_used,
            )
            finalized: list[Message] = []

            def on_complete(full_text: str) -> None:
                message = assistant.model_copy(update={"content": full_text})
                if self._store.is_current(conversation_id):
                    self._timeline.append(message)
                    self._timeline.remove_transient()
                else:
                    logger.warning(f"Dropping reply for conversation {conversation_id}; it is no longer open")
                finalized.append(message)
                self._transition(TurnState.FINALIZED)

            self.animation = self._animator.start(assistant.content, on_complete)
            await self.animation.wait()
            self._store.touch(conversation_id, added_messages=2)
            return finalized[0]
        finally:
            self._timeline.remove_transient()
            self.animation = None
            if self.state not in (TurnState.FINALIZED, TurnState.ERROR):
                logger.warning(f"Turn aborted in state {self.state.value}")
                self.state = TurnState.IDLE

    def _fail(self, conversation_id: int, error: SendFailedError) -> Message:
        self._transition(TurnState.ERROR)
        self.last_error = error.message
        logger.error(f"Turn failed for conversation {conversation_id}: {error.message}")
        self._timeline.remove_transient()
        message = error_message(conversation_id, send_failure_text(error.message))
        self._timeline.append(message)
        return message

    def _transition(self, new_state: TurnState) -> None:
        if new_state not in _TRANSITIONS.get(self.state, frozenset()):
            raise RuntimeError(f"Invalid turn transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Turn state {self.state.value} -> {new_state.value}")
        self.state = new_state
        for listener in list(self._listeners):
            listener(new_state)
