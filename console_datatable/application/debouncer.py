from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from console_datatable.config import DEFAULT_DEBOUNCE_MS

V = TypeVar("V")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with asyncio's ``call_later`` shape, e.g. an event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class RunningLoopScheduler:
    """Arms timers on the asyncio loop running at schedule time."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


@dataclass
class PendingEmission(Generic[V]):
    value: V
    delay_ms: int
    handle: TimerHandle | None = None
    cancelled: bool = False
    emitted: bool = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.emitted)

    def cancel(self) -> None:
        if not self.active:
            return
        self.cancelled = True
        if self.handle is not None:
            self.handle.cancel()


class Debouncer(Generic[V]):
    """Last-value-wins debounce with one cancellable timer per instance."""

    def __init__(
        self,
        on_emit: Callable[[V], None],
        delay_ms: int = DEFAULT_DEBOUNCE_MS,
        scheduler: Scheduler | None = None,
    ) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._on_emit = on_emit
        self.delay_ms = delay_ms
        self._scheduler = scheduler or RunningLoopScheduler()
        self._pending: PendingEmission[V] | None = None
        self._disposed = False

    @property
    def pending(self) -> bool:
        return self._pending is not None and self._pending.active

    @property
    def pending_value(self) -> V | None:
        return self._pending.value if self.pending else None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def schedule(self, value: V, delay_ms: int | None = None) -> PendingEmission[V] | None:
        if self._disposed:
            return None
        self.cancel()
        wait_ms = self.delay_ms if delay_ms is None else max(0, delay_ms)
        emission: PendingEmission[V] = PendingEmission(value=value, delay_ms=wait_ms)
        self._pending = emission
        if wait_ms == 0:
            self._fire(emission)
            return emission
        emission.handle = self._scheduler.call_later(wait_ms / 1000, lambda: self._fire(emission))
        return emission

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def dispose(self) -> None:
        self.cancel()
        self._disposed = True

    def _fire(self, emission: PendingEmission[V]) -> None:
        if not emission.active or self._disposed or emission is not self._pending:
            return
        emission.emitted = True
        self._pending = None
        self._on_emit(emission.value)
