"""Conversation list and current-conversation pointer.

CRUD against the conversation service. The list is kept sorted by last
activity (newest first) after every mutation or refresh, and the store swaps
the timeline's contents when the current conversation changes.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from nfrs_assistant.chat.animator import ResponseAnimator
from nfrs_assistant.chat.session_identity import SessionIdentity
from nfrs_assistant.chat.timeline import MessageTimeline
from nfrs_assistant.client import ChatApiClient
from nfrs_assistant.exceptions import (
    ChatClientError,
    CreateFailedError,
    NotFoundError,
    ServiceUnavailableError,
)
from nfrs_assistant.models import Conversation, Message, UserInfo, utc_now

logger = logging.getLogger(__name__)


def _activity_key(conversation: Conversation) -> datetime:
    moment = conversation.last_activity or conversation.created_at
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def sort_by_activity(conversations: list[Conversation]) -> list[Conversation]:
    """Newest activity first."""
    return sorted(conversations, key=_activity_key, reverse=True)


class ConversationStore:
    """Holds the user's conversations and the current one."""

    def __init__(
        self,
        client: ChatApiClient,
        timeline: MessageTimeline,
        session: SessionIdentity,
        owner: UserInfo | None = None,
        language: str = "en",
        animator: ResponseAnimator | None = None,
    ) -> None:
        self._client = client
        self._timeline = timeline
        self._session = session
        self._animator = animator
        self.owner = owner
        self.language = language
        self.conversations: list[Conversation] = []
        self.current: Conversation | None = None
        self.last_error: str | None = None
        self._owner_filter: str | None = None

    def get(self, conversation_id: int) -> Conversation | None:
        return next((c for c in self.conversations if c.id == conversation_id), None)

    def is_current(self, conversation_id: int) -> bool:
        return self.current is not None and self.current.id == conversation_id

    async def list_conversations(self, owner: str | None = None) -> list[Conversation]:
        """Fetch conversations, newest activity first.

        Args:
            owner: Optional username; conversations of other users are dropped.

        Raises:
            ServiceUnavailableError: If not authenticated or the service fails.
        """
        self._owner_filter = owner
        self.last_error = None
        if not self._client.is_authenticated:
            self.conversations = []
            self.current = None
            raise self._failed(ServiceUnavailableError("Not authenticated", status_code=401))

        try:
            conversations = await self._client.list_conversations()
        except ServiceUnavailableError as e:
            raise self._failed(e)

        if owner:
            conversations = [c for c in conversations if c.owner is None or c.owner.username == owner]
        self.conversations = sort_by_activity(conversations)
        logger.info(f"Loaded {len(self.conversations)} conversations")
        return list(self.conversations)

    async def refresh(self) -> list[Conversation]:
        """Re-pull the list with the last owner filter."""
        return await self.list_conversations(self._owner_filter)

    async def create(self, title: str, language: str | None = None) -> int:
        """Create a conversation and make it current.

        A fresh session id is rotated in first so documents uploaded before
        this conversation stay with the old session.

        Returns:
            The new conversation id.

        Raises:
            CreateFailedError: If the backend call fails or its reply has no id.
        """
        language = language or self.language
        self.last_error = None
        session_id = self._session.rotate()
        try:
            reply = await self._client.create_conversation(title, language, session_id)
            conversation = self._complete_record(reply, title, language)
        except ServiceUnavailableError as e:
            raise self._failed(CreateFailedError(e.message)) from e
        except ValidationError as e:
            raise self._failed(CreateFailedError(f"Invalid conversation returned by service: {e}")) from e

        self.conversations = sort_by_activity([conversation, *self.conversations])
        self._finish_reveal()
        self.current = conversation
        self._timeline.clear()
        logger.info(f"Created conversation {conversation.id}: {conversation.title}")
        return conversation.id

    async def select(self, conversation_id: int) -> list[Message]:
        """Make a known conversation current and load its history.

        Raises:
            NotFoundError: If the id is not in the local list, or the service
                           no longer has it.
            ServiceUnavailableError: If the history cannot be fetched.
        """
        self.last_error = None
        conversation = self.get(conversation_id)
        if conversation is None:
            raise self._failed(NotFoundError(f"Conversation {conversation_id} not found"))

        try:
            detail = await self._client.get_conversation_detail(conversation_id)
        except ServiceUnavailableError as e:
            if e.status_code == 404:
                raise self._failed(NotFoundError(f"Conversation {conversation_id} not found")) from e
            raise self._failed(e)
        except ValidationError as e:
            raise self._failed(ServiceUnavailableError(f"Invalid conversation returned by service: {e}")) from e

        self._finish_reveal()
        self.current = conversation
        self._timeline.replace(detail.messages)
        return self._timeline.messages

    async def rename(self, conversation_id: int, title: str) -> Conversation:
        self.last_error = None
        existing = self.get(conversation_id)
        language = existing.language if existing else self.language
        try:
            updated = await self._client.update_conversation(conversation_id, title, language)
        except ServiceUnavailableError as e:
            if e.status_code == 404:
                raise self._failed(NotFoundError(f"Conversation {conversation_id} not found")) from e
            raise self._failed(e)

        self._put(updated)
        return updated

    async def delete(self, conversation_id: int) -> None:
        """Delete a conversation; deleting the current one clears the timeline."""
        self.last_error = None
        try:
            await self._client.delete_conversation(conversation_id)
        except ServiceUnavailableError as e:
            raise self._failed(e)

        self.conversations = [c for c in self.conversations if c.id != conversation_id]
        if self.is_current(conversation_id):
            self._finish_reveal()
            self.current = None
            self._timeline.clear()
        logger.info(f"Deleted conversation {conversation_id}")

    def clear_selection(self) -> None:
        """Drop the current conversation; the next message starts a new one."""
        self._finish_reveal()
        self.current = None
        self._timeline.clear()

    def touch(self, conversation_id: int, added_messages: int = 0) -> None:
        """Record local activity on a conversation and re-sort."""
        conversation = self.get(conversation_id)
        if conversation is None:
            return
        now = utc_now()
        self._put(
            conversation.model_copy(
                update={
                    "last_activity": now,
                    "updated_at": now,
                    "message_count": conversation.message_count + added_messages,
                }
            )
        )

    def _finish_reveal(self) -> None:
        """Complete any running reveal into the timeline it started in."""
        if self._animator is not None and self._animator.active is not None:
            logger.debug("Finishing active reveal before switching conversations")
            self._animator.active.cancel()

    def _put(self, conversation: Conversation) -> None:
        others = [c for c in self.conversations if c.id != conversation.id]
        self.conversations = sort_by_activity([conversation, *others])
        if self.current is not None and self.current.id == conversation.id:
            self.current = conversation

    def _complete_record(self, reply: dict[str, Any], title: str, language: str) -> Conversation:
        """Build a full Conversation from a possibly partial create reply."""
        record = {k: v for k, v in reply.items() if v is not None}
        created_at = record.get("created_at") or utc_now()
        record.update(
            created_at=created_at,
            updated_at=created_at,
            last_activity=created_at,
            message_count=0,
            is_active=True,
        )
        record.setdefault("title", title)
        record.setdefault("language", language)
        if "user" not in record and self.owner is not None:
            record["user"] = self.owner
        return Conversation.model_validate(record)

    def _failed(self, error: ChatClientError) -> ChatClientError:
        self.last_error = error.message
        logger.error(f"Conversation store error: {error.message}")
        return error
