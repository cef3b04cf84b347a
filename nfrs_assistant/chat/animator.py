"""Simulated progressive reveal of a complete assistant response.

The backend answers with the whole message at once; the animator reveals it
in chunks on the event loop so the reply reads as if typed. Every reveal is
bounded by a safety timer and ends by handing the *complete* text to
``on_complete`` exactly once, whether it finished, was cancelled, or timed
out.

Design notes:

1. **Explicit state** - each reveal is a ``RevealState`` (index, total length,
   cancelled, completed) owned by its ``AnimationHandle``; nothing is shared
   between reveals except the animator's "active" pointer.

2. **Sub-linear duration** - the chunk size grows with the square root of the
   text length, so the number of steps, and with it the duration, grows with
   the square root too.

3. **Single active reveal** - starting a new reveal cancels the active one
   first (its ``on_complete`` runs before the new reveal starts) and strips
   thinking/typing placeholders from the timeline.
"""

import asyncio
import logging
import math
import random
from collections.abc import Callable
from dataclasses import dataclass, field

from nfrs_assistant.chat.timeline import MessageTimeline
from nfrs_assistant.config import AnimationConfig
from nfrs_assistant.models import TransientKind

logger = logging.getLogger(__name__)

THINKING_STAGES = (
    "🤔 Analyzing document...\n[===>          ]",
    "🤔 Analyzing document...\n[=====>        ]",
    "🧠 Processing content...\n[=======>      ]",
    "🧠 Processing content...\n[========>     ]",
    "✨ Generating summary...\n[==========>   ]",
    "✨ Generating summary...\n[===========>  ]",
    "📝 Preparing response...\n[============> ]",
    "📝 Preparing response...\n[=============>]",
)

# Includes the Devanagari danda used in Nepali text
SENTENCE_ENDINGS = frozenset(".!?।")

CompleteCallback = Callable[[str], None]
StageCallback = Callable[[int], None]
RevealListener = Callable[[str | None], None]


def chunk_size(total_length: int) -> int:
    """Characters revealed per step for a text of ``total_length``."""
    return max(1, math.isqrt(total_length) // 4)


def thinking_stage(progress: float, stage_count: int = len(THINKING_STAGES)) -> int:
    """Map reveal progress in [0, 1] to a stage index in [0, stage_count)."""
    return max(0, min(int(progress * stage_count), stage_count - 1))


def thinking_caption(stage: int) -> str:
    return THINKING_STAGES[max(0, min(stage, len(THINKING_STAGES) - 1))]


def _log_reveal_failure(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"Reveal task failed: {error}", exc_info=error)


@dataclass
class RevealState:
    """Progress of one reveal."""

    full_text: str
    index: int = 0
    total_length: int = field(init=False)
    cancelled: bool = False
    completed: bool = False

    def __post_init__(self) -> None:
        self.total_length = len(self.full_text)

    @property
    def revealed(self) -> str:
        return self.full_text[: self.index]

    @property
    def progress(self) -> float:
        return self.index / self.total_length


class AnimationHandle:
    """Cancellation token for one reveal."""

    def __init__(
        self,
        animator: "ResponseAnimator",
        state: RevealState,
        on_complete: CompleteCallback,
        on_stage_change: StageCallback | None,
    ) -> None:
        self.state = state
        self._animator = animator
        self._on_complete = on_complete
        self._on_stage_change = on_stage_change
        self._task: asyncio.Task[None] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._finished = asyncio.Event()

    @property
    def done(self) -> bool:
        return self.state.completed

    def cancel(self) -> None:
        """Stop revealing and complete immediately with the full text.

        No-op once the reveal has completed.
        """
        if self.state.completed:
            return
        self.state.cancelled = True
        logger.debug(f"Reveal cancelled at {self.state.index}/{self.state.total_length}")
        self._finish()

    async def wait(self) -> str:
        """Wait until ``on_complete`` has run and return the full text."""
        await self._finished.wait()
        return self.state.full_text

    def _expire(self) -> None:
        if self.state.completed:
            return
        logger.warning(
            f"Reveal exceeded safety timeout at {self.state.index}/{self.state.total_length}, "
            "forcing completion"
        )
        self.state.cancelled = True
        self._finish()

    def _finish(self) -> None:
        self.state.completed = True
        self.state.index = self.state.total_length
        if self._timer is not None:
            self._timer.cancel()
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        self._animator._settle(self)
        try:
            self._on_complete(self.state.full_text)
        finally:
            self._finished.set()


class ResponseAnimator:
    """Reveals assistant responses for one timeline, one at a time."""

    def __init__(
        self,
        timeline: MessageTimeline,
        config: AnimationConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._timeline = timeline
        self._config = config or AnimationConfig()
        self._rng = rng or random.Random()
        self._active: AnimationHandle | None = None
        self._revealing_text: str | None = None
        self._listeners: list[RevealListener] = []

    @property
    def active(self) -> AnimationHandle | None:
        return self._active

    @property
    def revealing_text(self) -> str | None:
        """Text revealed so far by the active reveal, None when idle."""
        return self._revealing_text

    def subscribe(self, listener: RevealListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def start(
        self,
        full_text: str,
        on_complete: CompleteCallback,
        on_stage_change: StageCallback | None = None,
    ) -> AnimationHandle:
        """Begin revealing ``full_text``.

        Must be called from a running event loop.

        Args:
            full_text: Complete response text, non-empty.
            on_complete: Called once with ``full_text`` when the reveal ends.
            on_stage_change: Optional; called with the thinking stage index
                             before each step.

        Returns:
            Handle whose ``cancel()`` completes the reveal immediately.

        Raises:
            ValueError: If ``full_text`` is empty.
        """
        if not full_text:
            raise ValueError("Cannot reveal an empty response")
        loop = asyncio.get_running_loop()

        if self._active is not None:
            logger.debug("Cancelling active reveal before starting a new one")
            self._active.cancel()
        self._timeline.remove_transient({TransientKind.THINKING, TransientKind.TYPING})

        handle = AnimationHandle(self, RevealState(full_text), on_complete, on_stage_change)
        self._active = handle
        handle._timer = loop.call_later(self._config.safety_timeout, handle._expire)
        handle._task = loop.create_task(self._reveal(handle))
        handle._task.add_done_callback(_log_reveal_failure)
        return handle

    async def _reveal(self, handle: AnimationHandle) -> None:
        state = handle.state
        step = chunk_size(state.total_length)
        await asyncio.sleep(self._config.start_delay)

        while not state.completed and state.index < state.total_length:
            if handle._on_stage_change is not None:
                handle._on_stage_change(thinking_stage(state.progress))
                if state.completed:
                    return
            start = state.index
            state.index = min(start + step, state.total_length)
            self._publish(state.revealed)
            if state.index < state.total_length:
                await asyncio.sleep(self._step_delay(state.full_text[start : state.index]))

        if state.completed:
            return
        await asyncio.sleep(self._config.finish_delay)
        if not state.completed:
            handle._finish()

    def _step_delay(self, chunk: str) -> float:
        delay = self._config.step_delay * (1.0 + self._rng.random())
        if any(ch in SENTENCE_ENDINGS for ch in chunk):
            delay += self._config.sentence_pause * (1.0 + self._rng.random())
        return delay

    def _settle(self, handle: AnimationHandle) -> None:
        if self._active is handle:
            self._active = None
            self._publish(None)

    def _publish(self, text: str | None) -> None:
        self._revealing_text = text
        for listener in list(self._listeners):
            listener(text)
