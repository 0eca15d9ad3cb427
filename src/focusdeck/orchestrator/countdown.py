# src/focusdeck/orchestrator/countdown.py

"""
Cancellable one-tick-per-second timers built on the TickScheduler port.

There is no pause/resume: cancel() is the only way to abort, and a cancelled
timer never calls back again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.ports import Cancellable, TickScheduler

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class Countdown:
    """
    Counts `ticks` down to zero, one tick per second.

    on_tick(remaining) fires after every decrement (…, 2, 1, 0);
    on_complete() fires right after the tick that reaches zero.
    """

    def __init__(
        self,
        scheduler: TickScheduler,
        ticks: int,
        on_tick: Callable[[int], None] | None,
        on_complete: Callable[[], None],
        *,
        name: str = "countdown",
    ) -> None:
        self._scheduler = scheduler
        self.remaining = max(0, int(ticks))
        self._on_tick = on_tick
        self._on_complete = on_complete
        self.name = name
        self._pending: Cancellable | None = None
        self.cancelled = False
        self.finished = False

    def start(self) -> Countdown:
        logger.debug("%s started (%d ticks)", self.name, self.remaining)
        if self.remaining == 0:
            self._finish()
        else:
            self._schedule()
        return self

    def _schedule(self) -> None:
        self._pending = self._scheduler.call_later(TICK_SECONDS, self._tick)

    def _tick(self) -> None:
        if self.cancelled or self.finished:
            return
        self._pending = None
        self.remaining -= 1
        if self._on_tick is not None:
            self._on_tick(self.remaining)
        if self.remaining <= 0:
            self._finish()
        else:
            self._schedule()

    def _finish(self) -> None:
        self.finished = True
        logger.debug("%s finished", self.name)
        self._on_complete()

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.finished)

    def cancel(self) -> None:
        if not self.active:
            return
        self.cancelled = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        logger.debug("%s cancelled at %d", self.name, self.remaining)


def start_countdown(
    scheduler: TickScheduler,
    ticks: int,
    on_tick: Callable[[int], None] | None,
    on_complete: Callable[[], None],
    *,
    name: str = "countdown",
) -> Countdown:
    """start(duration, on_tick, on_complete) -> cancellation handle."""
    return Countdown(scheduler, ticks, on_tick, on_complete, name=name).start()


class Repeater:
    """Calls `callback` every `interval` seconds until cancelled."""

    def __init__(self, scheduler: TickScheduler, interval: float, callback: Callable[[], None], *, name: str = "repeater") -> None:
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self.name = name
        self._pending: Cancellable | None = None
        self.cancelled = False

    def start(self) -> Repeater:
        self._pending = self._scheduler.call_later(self._interval, self._fire)
        return self

    def _fire(self) -> None:
        if self.cancelled:
            return
        try:
            self._callback()
        except Exception:
            logger.exception("%s callback failed", self.name)
        if not self.cancelled:
            self._pending = self._scheduler.call_later(self._interval, self._fire)

    def cancel(self) -> None:
        self.cancelled = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
