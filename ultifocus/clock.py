"""
Clock — wall-clock time and delayed callbacks for the lock engine.

SystemClock is used by the running service; ManualClock lets tests and the
simulator move time forward explicitly and fire due callbacks on demand.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Tuple


class Cancellable:
    """Handle returned by Clock.call_later()."""

    def __init__(self, cancel_fn: Callable[[], None]):
        self._cancel_fn = cancel_fn
        self.cancelled = False

    def cancel(self) -> None:
        if not self.cancelled:
            self.cancelled = True
            self._cancel_fn()


class Clock(ABC):

    @abstractmethod
    def now_ms(self) -> int:
        """Epoch milliseconds."""

    @abstractmethod
    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> Cancellable:
        """Run *fn* once after *delay_ms*; never blocks the caller."""


class SystemClock(Clock):

    def now_ms(self) -> int:
        return int(time.time() * 1000)

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> Cancellable:
        timer = threading.Timer(delay_ms / 1000.0, fn)
        timer.daemon = True
        timer.start()
        return Cancellable(timer.cancel)


class ManualClock(Clock):
    """
    Deterministic clock. Time only moves through advance(); callbacks that
    become due are run in due-time order on the advancing thread.
    """

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self._now = start_ms
        self._seq = itertools.count()
        self._pending: List[Tuple[int, int, Callable[[], None], Cancellable]] = []

    def now_ms(self) -> int:
        return self._now

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> Cancellable:
        handle = Cancellable(lambda: None)
        heapq.heappush(self._pending, (self._now + delay_ms, next(self._seq), fn, handle))
        return handle

    def advance(self, ms: int) -> None:
        target = self._now + ms
        while self._pending and self._pending[0][0] <= target:
            due, _, fn, handle = heapq.heappop(self._pending)
            self._now = due
            if not handle.cancelled:
                fn()
        self._now = target

    def advance_seconds(self, seconds: float) -> None:
        self.advance(int(seconds * 1000))

    @property
    def pending_count(self) -> int:
        return sum(1 for *_, h in self._pending if not h.cancelled)
