"""
Metric registry and periodic reporter.

The reporter maps metric IDs (name + sorted tags) to metric instances and,
on every report cycle, flushes each metric into series points and hands
the batch to a transport.

Locking:
    The registry lock covers map membership and the fetch-or-create
    decision only. ``series()`` copies the metric list under the lock and
    flushes after releasing it; each metric guards its own state. No lock
    is held while the transport runs.

Usage:
    reporter = MetricReporter(HTTPTransport(api_key), tags=["env:prod"])
    requests_total = fetch_counter(reporter, "app.requests", ["route:/"])
    requests_total.inc()
    reporter.start_background(10.0)
"""
import socket
import threading
import time
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Type, TypeVar

from ddmetrics.common.correlation import CycleContext, set_component
from ddmetrics.common.exceptions import ConfigurationError, MetricTypeError, ReportError
from ddmetrics.common.logging_config import get_logger, setup_logging
from ddmetrics.core.meter import Meter
from ddmetrics.core.metric import Metric, Series, metric_id
from ddmetrics.core.schedule import FixedRateSchedule
from ddmetrics.monitoring.metrics import (
    ReporterMetricsCollector,
    get_metrics_collector,
    start_metrics_server,
)
from ddmetrics.transport import HTTPTransport, Transport

logger = get_logger(__name__)

M = TypeVar("M", bound=Metric)


class LookupStatus(Enum):
    """Outcome of a typed registry lookup"""
    FOUND = "found"
    WRONG_KIND = "wrong_kind"
    NOT_FOUND = "not_found"


class LookupResult:
    """Typed lookup result: status plus the registered metric, if any."""

    __slots__ = ("status", "metric")

    def __init__(self, status: LookupStatus, metric: Optional[Metric] = None):
        self.status = status
        self.metric = metric

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    def __repr__(self) -> str:
        return f"LookupResult({self.status.value}, {self.metric!r})"


def _detach(metric: Metric) -> None:
    # Arbiter lock is taken outside the registry lock
    if isinstance(metric, Meter):
        metric.arbiter.remove(metric)


class MetricReporter:
    """
    Concurrent metric registry with a fixed-rate report loop.

    Args:
        transport: Collaborator receiving each series batch
        tags: Tags appended to every reported point
        host: Host label for every point (defaults to the machine hostname)
        clock: Wall-clock seconds used for point timestamps
        collector: Self-monitoring collector (defaults to the singleton)
    """

    def __init__(
        self,
        transport: Transport,
        tags: Optional[Iterable[str]] = None,
        host: Optional[str] = None,
        clock: Callable[[], float] = time.time,
        collector: Optional[ReporterMetricsCollector] = None,
    ):
        self.transport = transport
        self.tags: List[str] = list(tags or ())
        self.host = host or socket.gethostname()
        self._clock = clock
        self.collector = collector if collector is not None else get_metrics_collector()

        self._registry: Dict[str, Metric] = {}
        self._lock = threading.Lock()

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # -- Registry -----------------------------------------------------------

    def register(self, metric: Metric) -> None:
        """
        Store a metric at its ID, replacing any existing entry.

        A replaced meter or timer is detached from its tick arbiter.
        """
        with self._lock:
            replaced = self._registry.get(metric.id)
            self._registry[metric.id] = metric
        if replaced is not None and replaced is not metric:
            _detach(replaced)

    def unregister(self, name: str, tags: Optional[Iterable[str]] = None) -> bool:
        """
        Remove a metric; a meter or timer also stops being ticked.

        Returns:
            True if a metric was registered at that ID
        """
        with self._lock:
            removed = self._registry.pop(metric_id(name, tags), None)
        if removed is None:
            return False
        _detach(removed)
        return True

    def fetch(
        self,
        fallback: Callable[[], Metric],
        name: str,
        tags: Optional[Iterable[str]] = None,
    ) -> Metric:
        """
        Return the metric registered for name/tags, creating it if absent.

        ``fallback`` runs while the registry lock is held, so concurrent
        callers with the same ID create exactly one metric.
        """
        mid = metric_id(name, tags)
        with self._lock:
            metric = self._registry.get(mid)
            if metric is None:
                metric = fallback()
                self._registry[mid] = metric
            return metric

    def fetch_as(
        self,
        kind: Type[M],
        fallback: Callable[[], M],
        name: str,
        tags: Optional[Iterable[str]] = None,
    ) -> M:
        """
        Like ``fetch`` but checks the kind of an existing entry.

        Raises:
            MetricTypeError: The ID is registered to a different metric kind
        """
        metric = self.fetch(fallback, name, tags)
        if type(metric) is not kind:
            raise MetricTypeError(metric_id(name, tags), kind, type(metric))
        return metric

    def get(self, name: str, tags: Optional[Iterable[str]] = None) -> Optional[Metric]:
        return self.get_by_id(metric_id(name, tags))

    def get_by_id(self, mid: str) -> Optional[Metric]:
        with self._lock:
            return self._registry.get(mid)

    def lookup(
        self, kind: Type[Metric], name: str, tags: Optional[Iterable[str]] = None
    ) -> LookupResult:
        """Look a metric up and report whether it is exactly ``kind``."""
        metric = self.get(name, tags)
        if metric is None:
            return LookupResult(LookupStatus.NOT_FOUND)
        if type(metric) is not kind:
            return LookupResult(LookupStatus.WRONG_KIND, metric)
        return LookupResult(LookupStatus.FOUND, metric)

    def metrics(self) -> List[Metric]:
        """Copy of the registered metrics."""
        with self._lock:
            return list(self._registry.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._registry)

    # -- Reporting ----------------------------------------------------------

    def series(self) -> List[Series]:
        """
        Flush every registered metric into one batch.

        Each point gets the reporter tags and host. Metrics flush one by one,
        so the batch is not a single consistent instant across metrics.
        """
        now = int(self._clock())
        registered = self.metrics()
        self.collector.set_registered_metrics(len(registered))

        batch: List[Series] = []
        for metric in registered:
            batch.extend(metric.flush(now))

        for point in batch:
            point.tags = point.tags + self.tags
            point.host = self.host
        return batch

    def report(self) -> int:
        """
        Flush and send one batch.

        Returns:
            Number of series points sent

        Raises:
            ReportError: Flushing or the transport failed
        """
        with CycleContext() as cycle:
            start = time.perf_counter()
            try:
                batch = self.series()
                self.transport.post_series(batch)
            except Exception as e:
                self.collector.inc_report_failures()
                raise ReportError(f"Report cycle {cycle.cycle_id} failed: {e}") from e
            finally:
                self.collector.observe_report_duration(time.perf_counter() - start)

            self.collector.inc_reports()
            self.collector.inc_series_sent(len(batch))
            logger.debug(f"Reported {len(batch)} series points")
            return len(batch)

    def start(self, interval: float) -> None:
        """
        Report every ``interval`` seconds until ``stop()`` is called.

        Blocks the calling thread. Deadlines are anchored to the start time;
        a cycle that overruns skips the deadlines it missed instead of
        running back-to-back. Failures are logged and the loop carries on;
        the next deadline is the retry.
        """
        self._run(interval, self._new_stop_event())

    def _new_stop_event(self) -> threading.Event:
        with self._lock:
            self._stop_event = threading.Event()
            return self._stop_event

    def _run(self, interval: float, stop_event: threading.Event) -> None:
        set_component("reporter")
        schedule = FixedRateSchedule(interval)
        logger.info(f"MetricReporter started (interval={interval}s, host={self.host})")

        while not stop_event.wait(schedule.delay()):
            try:
                self.report()
            except Exception as exc:
                logger.error(f"Metrics report error: {exc}")

            skipped = schedule.advance()
            if skipped:
                self.collector.inc_skipped_ticks(skipped)
                logger.warning(
                    f"Report cycle overran interval={interval}s; "
                    f"skipped {skipped} deadline(s)"
                )

        logger.info("MetricReporter stopped")

    def start_background(self, interval: float) -> None:
        """Run ``start(interval)`` on a daemon thread."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                running = True
            else:
                running = False
                self._stop_event = threading.Event()
                self._thread = threading.Thread(
                    target=self._run, args=(interval, self._stop_event),
                    name="metric-reporter", daemon=True,
                )
                self._thread.start()
        if running:
            logger.warning("MetricReporter already running")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the report loop; joins the background thread if there is one."""
        with self._lock:
            self._stop_event.set()
            thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


def create_reporter_from_config(cfg=None) -> MetricReporter:
    """
    Build a reporter with an HTTP transport from settings.

    Args:
        cfg: ``config.settings.Settings``; the module singleton if omitted

    Raises:
        ConfigurationError: Settings missing or no API key configured
    """
    if cfg is None:
        from config.settings import settings as cfg
    if cfg is None:
        raise ConfigurationError("Settings could not be loaded")
    if not cfg.transport.api_key:
        raise ConfigurationError("DATADOG_API_KEY is not set")

    setup_logging(__name__, level=cfg.logging.level)

    if cfg.monitoring.metrics_enabled:
        start_metrics_server(port=cfg.monitoring.metrics_port)

    transport = HTTPTransport(
        api_key=cfg.transport.api_key,
        endpoint=cfg.transport.endpoint,
        timeout=cfg.transport.timeout_seconds,
    )
    return MetricReporter(
        transport,
        tags=cfg.reporter.tag_list,
        host=cfg.reporter.host,
    )
