"""
Timers combine a meter (throughput) with a sample (latency distribution).

Durations are recorded in nanoseconds and reported in ``unit``:
a timer built with ``unit=MILLISECOND`` reports its mean, percentiles and
so on in milliseconds.
"""
import functools
import time
from datetime import timedelta
from typing import Iterable, List, Optional, Union

from ddmetrics.core.arbiter import TickArbiter
from ddmetrics.core.histogram import distribution_series
from ddmetrics.core.meter import Meter
from ddmetrics.core.metric import Series
from ddmetrics.core.sample import Sample, SampleSnapshot, new_default_sample

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND

Duration = Union[int, timedelta]


def _to_nanoseconds(duration: Duration) -> int:
    if isinstance(duration, timedelta):
        return (
            (duration.days * 86400 + duration.seconds) * SECOND
            + duration.microseconds * MICROSECOND
        )
    return int(duration)


class _TimerContext:
    """Records the time spent inside a ``with`` block or decorated call."""

    def __init__(self, timer: "Timer"):
        self._timer = timer
        self._start = 0

    def __enter__(self) -> "_TimerContext":
        self._start = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._timer.update_since(self._start)

    def __call__(self, func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with _TimerContext(self._timer):
                return func(*args, **kwargs)
        return wrapper


class Timer(Meter):
    """
    Meter plus duration distribution.

    Args:
        name: Metric name
        unit: Nanoseconds per reported unit (default MILLISECOND)
        sample: Reservoir for durations (defaults to exponentially-decaying)
        tags: Metric tags
        arbiter: Arbiter that ticks the embedded meter
    """

    def __init__(
        self,
        name: str,
        unit: int = MILLISECOND,
        sample: Optional[Sample] = None,
        tags: Optional[Iterable[str]] = None,
        arbiter: Optional[TickArbiter] = None,
    ):
        super().__init__(name, tags, arbiter)
        self.unit = float(unit)
        self.sample = sample if sample is not None else new_default_sample()

    def clear(self) -> None:
        """Clear the duration sample. Meter state is kept."""
        self.sample.clear()

    def snapshot(self) -> SampleSnapshot:
        return self.sample.snapshot()

    def update(self, duration: Duration) -> None:
        """Record one event that took ``duration`` (nanoseconds or timedelta)."""
        self.sample.update(_to_nanoseconds(duration))
        self.mark(1)

    def update_since(self, start_ns: int) -> None:
        """Record an event that started at ``start_ns`` (perf_counter_ns) and ends now."""
        self.update(time.perf_counter_ns() - start_ns)

    def time(self) -> _TimerContext:
        """
        Return a context-manager / decorator that times its block.

        Usage:
            with timer.time():
                handle(request)
        """
        return _TimerContext(self)

    def flush(self, now: int) -> List[Series]:
        series = self._rate_series(now)
        series.extend(distribution_series(self, self.snapshot(), now, self.unit))
        return series


def fetch_timer(
    reporter, name: str, unit: int = MILLISECOND, tags: Optional[Iterable[str]] = None
) -> Timer:
    """Return the registered timer or register one with a default sample."""
    return reporter.fetch_as(Timer, lambda: Timer(name, unit, None, tags), name, tags)


def register_timer(
    reporter, name: str, unit: int = MILLISECOND, tags: Optional[Iterable[str]] = None
) -> Timer:
    return register_custom_timer(reporter, name, unit, new_default_sample(), tags)


def fetch_custom_timer(
    reporter, name: str, unit: int, sample: Sample, tags: Optional[Iterable[str]] = None
) -> Timer:
    """Return the registered timer or register one backed by ``sample``."""
    return reporter.fetch_as(Timer, lambda: Timer(name, unit, sample, tags), name, tags)


def register_custom_timer(
    reporter, name: str, unit: int, sample: Sample, tags: Optional[Iterable[str]] = None
) -> Timer:
    m = Timer(name, unit, sample, tags)
    reporter.register(m)
    return m
