from __future__ import annotations

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field


class TimerHandle(ABC):
    """Cancellation handle for a callback scheduled with `Scheduler.call_later()`."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the callback. Safe to call more than once, or after it fired."""

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        """True once `cancel()` was called."""


class Scheduler(ABC):
    """Timer source for quiet-period timers.

    All callbacks run on the scheduler's single logical thread and never overlap.
    """

    @abstractmethod
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        """Run `callback` once after `delay_s` seconds unless cancelled first."""

    @abstractmethod
    def now(self) -> float:
        """Current time on the scheduler's clock, in seconds."""


class _AsyncioHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop (e.g. the one Textual runs on)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop if loop is not None else asyncio.get_running_loop()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        return _AsyncioHandle(self._loop.call_later(delay_s, callback))

    def now(self) -> float:
        return self._loop.time()


@dataclass(order=True, slots=True)
class _ManualEntry:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled_flag: bool = field(default=False, compare=False)


class _ManualHandle(TimerHandle):
    def __init__(self, entry: _ManualEntry) -> None:
        self._entry = entry

    def cancel(self) -> None:
        self._entry.cancelled_flag = True

    @property
    def cancelled(self) -> bool:
        return self._entry.cancelled_flag


class ManualScheduler(Scheduler):
    """Deterministic virtual clock.

    Time only moves through `advance()`. Due callbacks fire in due-time order, ties in
    the order they were scheduled. Callbacks scheduled while advancing fire in the same
    `advance()` call if they fall due within it.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[_ManualEntry] = []
        self._seq = itertools.count()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        entry = _ManualEntry(
            due=self._now + max(0.0, delay_s),
            seq=next(self._seq),
            callback=callback,
        )
        heapq.heappush(self._queue, entry)
        return _ManualHandle(entry)

    def now(self) -> float:
        return self._now

    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry.cancelled_flag)

    def advance(self, seconds: float) -> int:
        """Move the clock forward and fire everything that falls due. Returns fired count."""

        if seconds < 0:
            raise ValueError("Cannot move the clock backwards")
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0].due <= target:
            entry = heapq.heappop(self._queue)
            if entry.cancelled_flag:
                continue
            self._now = entry.due
            entry.callback()
            fired += 1
        self._now = target
        return fired
