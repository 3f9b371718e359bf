"""
Structured logging configuration using JSON format.
Provides consistent logging across the library with report cycle IDs.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Optional

from ddmetrics.common.correlation import CycleFilter


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging with cycle tracking"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON with cycle and component fields"""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        # Injected by CycleFilter
        cycle_id = getattr(record, 'cycle_id', None)
        if cycle_id:
            log_data['cycle_id'] = cycle_id

        component = getattr(record, 'component', None)
        if component:
            log_data['component'] = component

        if hasattr(record, 'metric'):
            log_data['metric'] = record.metric

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(name: str, level: str = "INFO") -> logging.Logger:
    """
    Configure structured logging for a component.

    Args:
        name: Logger name (usually __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance with cycle filter
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter())

    logger.addHandler(handler)

    if not any(isinstance(f, CycleFilter) for f in logger.filters):
        logger.addFilter(CycleFilter())

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get or create a logger with optional level override.

    Args:
        name: Logger name
        level: Optional log level override

    Returns:
        Logger instance with cycle filter
    """
    if level:
        return setup_logging(name, level)

    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logging(name, "INFO")

    if not any(isinstance(f, CycleFilter) for f in logger.filters):
        logger.addFilter(CycleFilter())

    return logger
