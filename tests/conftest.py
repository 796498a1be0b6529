from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable

import pytest


class ManualTimer:
    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-time stand-in for an event loop's call_later."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, ManualTimer]] = []
        self._sequence = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        heapq.heappush(self._queue, (timer.when, next(self._sequence), timer))
        return timer

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            when, _, timer = heapq.heappop(self._queue)
            self.now = when
            if not timer.cancelled:
                timer.callback()
        self.now = target

    def advance_ms(self, milliseconds: float) -> None:
        self.advance(milliseconds / 1000)

    @property
    def armed(self) -> int:
        return sum(1 for _, _, timer in self._queue if not timer.cancelled)


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()
