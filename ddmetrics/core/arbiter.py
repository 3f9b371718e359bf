"""
Tick arbiter: advances the decay state of every meter-derived metric.

Meters and timers only fold their uncounted events into moving averages
when ticked. The arbiter owns one daemon thread that ticks every attached
metric each ``TICK_INTERVAL`` seconds, in attachment order, holding its
lock for the whole pass. A slow ``tick()`` therefore delays the rest of
that pass.

Applications may build and own an arbiter explicitly; metrics created
without one attach to the process default from ``get_default_arbiter()``.
"""
import threading
import time
from typing import Callable, List, Optional

from ddmetrics.common.logging_config import get_logger
from ddmetrics.core.ewma import TICK_INTERVAL
from ddmetrics.core.schedule import FixedRateSchedule
from ddmetrics.monitoring.metrics import ReporterMetricsCollector, get_metrics_collector

logger = get_logger(__name__)


class TickArbiter:
    """
    Periodically calls ``tick()`` on attached metrics.

    Args:
        interval: Seconds between passes (default 5)
        clock: Monotonic seconds source; meters read elapsed time from it
        autostart: Start the loop on the first ``add()``
        collector: Self-monitoring collector (defaults to the singleton)
    """

    def __init__(
        self,
        interval: float = TICK_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        autostart: bool = True,
        collector: Optional[ReporterMetricsCollector] = None,
    ) -> None:
        self.interval = interval
        self.clock = clock
        self.autostart = autostart
        self.collector = collector if collector is not None else get_metrics_collector()
        self._metrics: List = []
        # Reentrant so a tick() may attach new metrics to this arbiter
        self._lock = threading.RLock()
        self._started = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def add(self, metric) -> None:
        """Attach a metric; the first call on an autostart arbiter starts the loop."""
        with self._lock:
            self._metrics.append(metric)
            count = len(self._metrics)
            start = self.autostart and not self._started
            if start:
                self._start_locked()
        self.collector.set_tickable_metrics(count)
        if start:
            logger.info(f"TickArbiter started (interval={self.interval}s)")

    def remove(self, metric) -> bool:
        """
        Detach a metric so it is no longer ticked.

        Returns:
            True if the metric was attached
        """
        with self._lock:
            try:
                self._metrics.remove(metric)
            except ValueError:
                return False
            count = len(self._metrics)
        self.collector.set_tickable_metrics(count)
        return True

    def metrics(self) -> List:
        with self._lock:
            return list(self._metrics)

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)

    def tick_all(self) -> None:
        """
        Run one pass over every attached metric.

        Metrics attached or removed by a ``tick()`` during the pass take
        effect from the next pass.
        """
        with self._lock:
            for metric in list(self._metrics):
                try:
                    metric.tick()
                except Exception as exc:
                    self.collector.inc_tick_errors()
                    logger.error(
                        f"tick() failed for {metric!r}: {exc}",
                        exc_info=True,
                        extra={"metric": str(getattr(metric, "id", metric))},
                    )

    def start(self) -> None:
        """Start the loop thread. Does nothing if already started."""
        with self._lock:
            if self._started:
                return
            self._start_locked()
        logger.info(f"TickArbiter started (interval={self.interval}s)")

    def _start_locked(self) -> None:
        self._started = True
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,),
            name="tick-arbiter", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the loop thread to stop and wait for it."""
        with self._lock:
            thread = self._thread
            self._started = False
            self._thread = None
            self._stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            logger.info("TickArbiter stopped")

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def _run(self, stop_event: threading.Event) -> None:
        schedule = FixedRateSchedule(self.interval, self.clock)
        while not stop_event.wait(schedule.delay()):
            self.tick_all()
            skipped = schedule.advance()
            if skipped:
                self.collector.inc_skipped_ticks(skipped)
                logger.warning(f"TickArbiter pass overran; skipped {skipped} tick(s)")


_default_arbiter: Optional[TickArbiter] = None
_default_lock = threading.Lock()


def get_default_arbiter() -> TickArbiter:
    """
    Return the process-wide ``TickArbiter``.
    Creates one on first call (thread-safe); its loop starts with the first metric.
    """
    global _default_arbiter
    if _default_arbiter is None:
        with _default_lock:
            if _default_arbiter is None:
                _default_arbiter = TickArbiter()
    return _default_arbiter


def reset_default_arbiter() -> None:
    """Stop and discard the process-wide arbiter (for testing)."""
    global _default_arbiter
    with _default_lock:
        arbiter, _default_arbiter = _default_arbiter, None
    if arbiter is not None:
        arbiter.stop()
