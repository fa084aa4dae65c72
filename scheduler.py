from __future__ import annotations

import time
from typing import Callable

from exceptions import SchedulerBusyError


class TimerHandle:
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """
    Single-slot timer on a virtual clock.

    At most one callback is pending at a time. Nothing fires on its own; the
    owner drives the clock with ``tick``, ``advance`` or ``run_until_idle``.
    A callback may arm the next timer while it runs.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._slot: TimerHandle | None = None

    @property
    def pending(self) -> TimerHandle | None:
        if self._slot is not None and self._slot.cancelled:
            self._slot = None
        return self._slot

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        if self.pending is not None:
            raise SchedulerBusyError("A timer is already pending; cancel it first.")
        handle = TimerHandle(self.now + max(0.0, delay), callback)
        self._slot = handle
        return handle

    def _wait(self, due: float) -> None:
        pass

    def tick(self) -> bool:
        """Fire the pending timer, whatever its due time. Returns False if none."""
        handle = self.pending
        if handle is None:
            return False
        self._wait(handle.due)
        self._slot = None
        self.now = max(self.now, handle.due)
        handle.callback()
        return True

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every timer that falls due."""
        deadline = self.now + seconds
        fired = 0
        while True:
            handle = self.pending
            if handle is None or handle.due > deadline:
                break
            self.tick()
            fired += 1
        self.now = deadline
        return fired

    def run_until_idle(self, max_ticks: int | None = None) -> int:
        fired = 0
        while max_ticks is None or fired < max_ticks:
            if not self.tick():
                break
            fired += 1
        return fired


class SleepingScheduler(ManualScheduler):
    """ManualScheduler that waits in real time before each timer fires."""

    def _wait(self, due: float) -> None:
        delay = due - self.now
        if delay > 0:
            time.sleep(delay)
