"""
Monitoring module - Prometheus metrics about the reporter itself.
"""
from ddmetrics.monitoring.metrics import (
    ReporterMetricsCollector,
    start_metrics_server,
    get_metrics_collector,
)

__all__ = [
    "ReporterMetricsCollector",
    "start_metrics_server",
    "get_metrics_collector",
]
