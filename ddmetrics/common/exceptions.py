"""
Custom exceptions for the metrics library.
Metric updates never raise; these cover registry misuse and reporting.
"""


class BaseMetricsException(Exception):
    """Base exception for the metrics library"""
    pass


class MetricTypeError(BaseMetricsException):
    """A registered metric is not of the kind the caller asked for"""

    def __init__(self, metric_id: str, expected: type, actual: type):
        self.metric_id = metric_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Metric '{metric_id}' is a {actual.__name__}, "
            f"expected {expected.__name__}"
        )


class TransportError(BaseMetricsException):
    """Error delivering a series batch to the monitoring backend"""
    pass


class ReportError(BaseMetricsException):
    """A report cycle failed; wraps the underlying cause"""
    pass


class ConfigurationError(BaseMetricsException):
    """Error in configuration loading or validation"""
    pass
