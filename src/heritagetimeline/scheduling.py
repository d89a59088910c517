"""Frame and timer scheduling behind a small interface.

PlaybackClock never touches an event loop directly: it asks a Scheduler for
repeating frame callbacks and one-shot timers, and cancels them through the
returned handles. ``AsyncioScheduler`` runs on an asyncio event loop;
``ManualScheduler`` advances virtual wall time explicitly, for tests and
offline rendering.
"""

import asyncio
import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

FrameCallback = Callable[[float], None]  # Receives the frame time in ms
TimerCallback = Callable[[], None]

DEFAULT_FRAME_MS = 16.67
_EPSILON_MS = 1e-6  # Absorbs float drift from repeated frame additions


class Handle(Protocol):
    def cancel(self) -> None:
        ...  # pragma: no cover


class Scheduler(Protocol):
    """Injectable scheduling source."""

    def now_ms(self) -> float:
        """Monotonic wall time in milliseconds."""
        ...  # pragma: no cover

    def request_frame(self, callback: FrameCallback) -> Handle:
        """Run callback once on the next frame."""
        ...  # pragma: no cover

    def call_later(self, delay_ms: float, callback: TimerCallback) -> Handle:
        """Run callback once after delay_ms."""
        ...  # pragma: no cover


class AsyncioScheduler:
    """Frames and timers on an asyncio event loop (single-threaded)."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        frame_ms: float = DEFAULT_FRAME_MS,
    ) -> None:
        self._loop = loop
        self.frame_ms = frame_ms

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now_ms(self) -> float:
        return self.loop.time() * 1000

    def request_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(self.frame_ms / 1000, lambda: callback(self.now_ms()))

    def call_later(self, delay_ms: float, callback: TimerCallback) -> asyncio.TimerHandle:
        return self.loop.call_later(delay_ms / 1000, callback)


@dataclass(order=True)
class _Entry:
    due_ms: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler driven by ``advance``.

    Usage:
        scheduler = ManualScheduler()
        clock = PlaybackClock(sites, scheduler=scheduler)
        clock.play()
        scheduler.advance(1000)  # fires ~60 frames and any due timers
    """

    def __init__(self, frame_ms: float = DEFAULT_FRAME_MS, start_ms: float = 0.0) -> None:
        self.frame_ms = frame_ms
        self._now = start_ms
        self._queue: list[_Entry] = []
        self._seq = itertools.count()

    def now_ms(self) -> float:
        return self._now

    def _push(self, due_ms: float, callback: Callable[[], None]) -> _Entry:
        entry = _Entry(due_ms, next(self._seq), callback)
        heapq.heappush(self._queue, entry)
        return entry

    def request_frame(self, callback: FrameCallback) -> _Entry:
        due = self._now + self.frame_ms
        return self._push(due, lambda: callback(due))

    def call_later(self, delay_ms: float, callback: TimerCallback) -> _Entry:
        return self._push(self._now + delay_ms, callback)

    @property
    def pending(self) -> int:
        """Number of live (uncancelled) callbacks."""
        return sum(1 for e in self._queue if not e.cancelled)

    def advance(self, ms: float) -> int:
        """Move time forward by ms, firing everything due in order.

        Returns:
            Number of callbacks run.
        """
        target = self._now + ms
        fired = 0
        while self._queue and self._queue[0].due_ms <= target + _EPSILON_MS:
            entry = heapq.heappop(self._queue)
            if entry.cancelled:
                continue
            self._now = max(self._now, entry.due_ms)
            entry.callback()
            fired += 1
        self._now = max(self._now, target)
        return fired

    def run_frames(self, count: int) -> int:
        """Advance by exactly ``count`` frame intervals."""
        return self.advance(self.frame_ms * count)
