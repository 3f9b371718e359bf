"""
Fixed-rate deadlines for the background loops.

Deadlines are anchored to the loop's start: deadline k is
``start + k * interval`` no matter how long each iteration took. When an
iteration overruns, every deadline already in the past is skipped and
the loop waits for the next one in the future.
"""
import time
from typing import Callable


class FixedRateSchedule:
    """
    Tracks the next deadline of a fixed-rate loop.

    Usage:
        schedule = FixedRateSchedule(10.0)
        schedule.start()
        while not stop_event.wait(schedule.delay()):
            run_once()
            skipped = schedule.advance()
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self._clock = clock
        self._deadline = clock() + interval

    @property
    def deadline(self) -> float:
        return self._deadline

    def start(self) -> None:
        """Anchor the first deadline one interval from now."""
        self._deadline = self._clock() + self.interval

    def delay(self) -> float:
        """Seconds until the next deadline, never negative."""
        return max(0.0, self._deadline - self._clock())

    def advance(self) -> int:
        """
        Move to the next deadline after an iteration finished.

        Returns:
            Number of deadlines skipped because they were already past
        """
        self._deadline += self.interval
        now = self._clock()
        if now <= self._deadline:
            return 0
        skipped = int((now - self._deadline) // self.interval) + 1
        self._deadline += skipped * self.interval
        return skipped
