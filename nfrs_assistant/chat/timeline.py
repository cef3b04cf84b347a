"""Ordered messages of the active conversation.

The timeline keeps an id-to-position index next to the message list, so a
temporary message can be swapped for its confirmed form in place without
scanning. Deduplication is a render-time view and never rewrites storage.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

from nfrs_assistant.models import ALL_TRANSIENT, Message, TransientKind

logger = logging.getLogger(__name__)

TimelineListener = Callable[[list[Message]], None]


def dedupe(messages: Sequence[Message]) -> list[Message]:
    """Collapse adjacent runs of identical (role, content) into the first one."""
    result: list[Message] = []
    for message in messages:
        if result and result[-1].role == message.role and result[-1].content == message.content:
            continue
        result.append(message)
    return result


class MessageTimeline:
    """Message list for the active conversation.

    Mutated only by the turn orchestrator, the animator's completion
    callback, the conversation store and the document pipeline. Presentation
    code reads snapshots through ``subscribe``.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._positions: dict[str, int] = {}
        self._listeners: list[TimelineListener] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._positions

    @property
    def messages(self) -> list[Message]:
        """Stored messages in order, duplicates included."""
        return list(self._messages)

    def get(self, message_id: str) -> Message | None:
        position = self._positions.get(message_id)
        return None if position is None else self._messages[position]

    def transient_messages(self) -> list[Message]:
        return [m for m in self._messages if m.is_transient]

    def append(self, message: Message) -> None:
        """Add a message at the end.

        Raises:
            ValueError: If a message with the same id is already present.
        """
        if message.id in self._positions:
            raise ValueError(f"Duplicate message id in timeline: {message.id}")
        self._positions[message.id] = len(self._messages)
        self._messages.append(message)
        self._notify()

    def reconcile_temp(self, temp_id: str, final_message: Message) -> bool:
        """Replace a temporary message with its confirmed form, keeping its position.

        Returns:
            False if ``temp_id`` is no longer in the timeline (nothing changes).
        """
        position = self._positions.get(temp_id)
        if position is None:
            logger.debug(f"Temp message {temp_id} already gone, nothing to reconcile")
            return False
        if final_message.id != temp_id and final_message.id in self._positions:
            raise ValueError(f"Duplicate message id in timeline: {final_message.id}")
        del self._positions[temp_id]
        self._messages[position] = final_message
        self._positions[final_message.id] = position
        self._notify()
        return True

    def remove_transient(self, kinds: Iterable[TransientKind] = ALL_TRANSIENT) -> int:
        """Strip messages whose transient kind is in ``kinds``.

        Confirmed messages are never touched, so this is safe to call at any
        time and idempotent.

        Returns:
            Number of messages removed.
        """
        kinds = frozenset(kinds) - {TransientKind.NONE}
        kept = [m for m in self._messages if m.transient not in kinds]
        removed = len(self._messages) - len(kept)
        if removed:
            self._reset(kept)
            self._notify()
        return removed

    def replace(self, messages: Iterable[Message]) -> None:
        """Swap in a conversation history, e.g. after selecting a conversation."""
        self._reset(list(messages))
        self._notify()

    def clear(self) -> None:
        self.replace([])

    def dedupe(self) -> list[Message]:
        return dedupe(self._messages)

    def snapshot(self) -> list[Message]:
        """Render view of the timeline."""
        return self.dedupe()

    def subscribe(self, listener: TimelineListener) -> Callable[[], None]:
        """Register a snapshot listener.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _reset(self, messages: list[Message]) -> None:
        """Rebuild storage, keeping the first message for each id."""
        kept: list[Message] = []
        positions: dict[str, int] = {}
        for message in messages:
            if message.id in positions:
                logger.warning(f"Dropping duplicate message id {message.id} from history")
                continue
            positions[message.id] = len(kept)
            kept.append(message)
        self._messages = kept
        self._positions = positions

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
