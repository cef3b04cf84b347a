"""Unit tests for MessageTimeline and dedupe."""

import pytest
import pytest_check as check

from nfrs_assistant.chat.timeline import MessageTimeline, dedupe
from nfrs_assistant.models import Message, MessageRole, TransientKind


def make_message(
    message_id: str,
    content: str = "hello",
    role: MessageRole = MessageRole.USER,
    transient: TransientKind = TransientKind.NONE,
) -> Message:
    return Message(id=message_id, conversation_id=1, role=role, content=content, transient=transient)


class TestAppend:
    """Tests for appending messages."""

    def test_appends_in_order(self) -> None:
        timeline = MessageTimeline()
        timeline.append(make_message("a", "first"))
        timeline.append(make_message("b", "second"))

        check.equal([m.id for m in timeline.messages], ["a", "b"])
        check.equal(len(timeline), 2)
        check.is_in("a", timeline)

    def test_rejects_duplicate_id(self) -> None:
        """Appending an id already present raises ValueError."""
        timeline = MessageTimeline()
        timeline.append(make_message("a"))

        with pytest.raises(ValueError, match="Duplicate message id"):
            timeline.append(make_message("a", "other"))


class TestReconcileTemp:
    """Tests for swapping a temp message for its confirmed form."""

    def test_replaces_in_place(self) -> None:
        """Confirmed message takes the temp message's position."""
        timeline = MessageTimeline()
        timeline.append(make_message("before", "x"))
        timeline.append(make_message("temp-1", "question", transient=TransientKind.TEMP))
        timeline.append(make_message("after", "y", role=MessageRole.ASSISTANT))

        confirmed = make_message("user-1", "question")
        check.is_true(timeline.reconcile_temp("temp-1", confirmed))

        check.equal([m.id for m in timeline.messages], ["before", "user-1", "after"])
        check.is_none(timeline.get("temp-1"))
        check.equal(timeline.get("user-1"), confirmed)

    def test_unknown_temp_is_noop(self) -> None:
        """Reconciling a temp id that is gone changes nothing."""
        timeline = MessageTimeline()
        timeline.append(make_message("a"))

        check.is_false(timeline.reconcile_temp("temp-missing", make_message("user-1")))
        check.equal([m.id for m in timeline.messages], ["a"])

    def test_index_stays_consistent_after_removal(self) -> None:
        """Positions are rebuilt when transient messages before the temp are removed."""
        timeline = MessageTimeline()
        timeline.append(make_message("thinking-1", "...", role=MessageRole.ASSISTANT, transient=TransientKind.THINKING))
        timeline.append(make_message("temp-1", "question", transient=TransientKind.TEMP))
        timeline.remove_transient({TransientKind.THINKING})

        timeline.reconcile_temp("temp-1", make_message("user-1", "question"))

        check.equal([m.id for m in timeline.messages], ["user-1"])


class TestRemoveTransient:
    """Tests for stripping transient messages."""

    def test_removes_all_transient_kinds_by_default(self) -> None:
        timeline = MessageTimeline()
        timeline.append(make_message("user-1", "q"))
        timeline.append(make_message("temp-1", "q2", transient=TransientKind.TEMP))
        timeline.append(make_message("thinking-1", "t", role=MessageRole.ASSISTANT, transient=TransientKind.THINKING))
        timeline.append(make_message("typing-1", "", role=MessageRole.ASSISTANT, transient=TransientKind.TYPING))

        removed = timeline.remove_transient()

        check.equal(removed, 3)
        check.equal([m.id for m in timeline.messages], ["user-1"])
        check.equal(timeline.transient_messages(), [])

    def test_removes_only_requested_kinds(self) -> None:
        timeline = MessageTimeline()
        timeline.append(make_message("temp-1", "q", transient=TransientKind.TEMP))
        timeline.append(make_message("thinking-1", "t", role=MessageRole.ASSISTANT, transient=TransientKind.THINKING))

        timeline.remove_transient({TransientKind.THINKING})

        check.equal([m.id for m in timeline.messages], ["temp-1"])

    def test_is_idempotent(self) -> None:
        """A second call removes nothing and never touches confirmed messages."""
        timeline = MessageTimeline()
        timeline.append(make_message("user-1", "q"))
        timeline.append(make_message("temp-1", "q2", transient=TransientKind.TEMP))

        check.equal(timeline.remove_transient(), 1)
        check.equal(timeline.remove_transient(), 0)
        check.equal([m.id for m in timeline.messages], ["user-1"])


class TestDedupe:
    """Tests for the render-time dedupe view."""

    def test_collapses_adjacent_duplicates(self) -> None:
        """Adjacent messages with the same role and content collapse to the first."""
        messages = [
            make_message("a", "hi"),
            make_message("b", "hi"),
            make_message("c", "hi", role=MessageRole.ASSISTANT),
            make_message("d", "hi"),
        ]

        check.equal([m.id for m in dedupe(messages)], ["a", "c", "d"])

    def test_is_idempotent(self) -> None:
        messages = [make_message("a", "x"), make_message("b", "x"), make_message("c", "y")]

        once = dedupe(messages)
        check.equal(dedupe(once), once)

    def test_does_not_rewrite_storage(self) -> None:
        timeline = MessageTimeline()
        timeline.append(make_message("a", "x"))
        timeline.append(make_message("b", "x"))

        check.equal(len(timeline.snapshot()), 1)
        check.equal(len(timeline.messages), 2)


class TestSubscribe:
    """Tests for snapshot listeners."""

    def test_listener_receives_snapshots(self) -> None:
        timeline = MessageTimeline()
        snapshots: list[list[str]] = []
        unsubscribe = timeline.subscribe(lambda messages: snapshots.append([m.id for m in messages]))

        timeline.append(make_message("a", "x"))
        timeline.append(make_message("b", "y"))
        unsubscribe()
        timeline.clear()

        check.equal(snapshots, [["a"], ["a", "b"]])

    def test_replace_swaps_history(self) -> None:
        timeline = MessageTimeline()
        timeline.append(make_message("a", "x"))

        timeline.replace([make_message("h1", "old"), make_message("h2", "older")])

        check.equal([m.id for m in timeline.messages], ["h1", "h2"])
        check.is_not_in("a", timeline)

    def test_replace_keeps_first_of_duplicate_ids(self) -> None:
        """A history with repeated ids loads instead of failing."""
        timeline = MessageTimeline()

        timeline.replace([make_message("h1", "first"), make_message("h2", "second"), make_message("h1", "again")])

        check.equal([(m.id, m.content) for m in timeline.messages], [("h1", "first"), ("h2", "second")])
        check.equal(timeline.get("h2").content, "second")
