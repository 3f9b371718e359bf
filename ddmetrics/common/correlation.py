"""
Report cycle IDs for log correlation.
Every flush-and-send cycle gets an ID so its log lines can be grouped.
"""
import uuid
import logging
from typing import Optional
from contextvars import ContextVar

_cycle_id_var: ContextVar[Optional[str]] = ContextVar(
    'cycle_id', default=None
)

_component_var: ContextVar[Optional[str]] = ContextVar(
    'component', default=None
)


def generate_cycle_id() -> str:
    """
    Generate a new unique cycle ID.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def set_cycle_id(cycle_id: str) -> None:
    """Set the cycle ID for the current context."""
    _cycle_id_var.set(cycle_id)


def get_cycle_id() -> Optional[str]:
    """Get the cycle ID of the current context, or None."""
    return _cycle_id_var.get()


def clear_cycle_id() -> None:
    """Clear the cycle ID from the current context."""
    _cycle_id_var.set(None)


def set_component(component: str) -> None:
    """
    Set the component name for the current context.

    Args:
        component: Component name (e.g., "reporter", "arbiter")
    """
    _component_var.set(component)


def get_component() -> Optional[str]:
    return _component_var.get()


class CycleFilter(logging.Filter):
    """
    Logging filter that injects cycle_id and component into log records.
    Reads from ContextVar so every log statement inside a report cycle
    carries the cycle ID without explicit passing.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.cycle_id = get_cycle_id() or ""
        record.component = get_component() or ""
        return True


class CycleContext:
    """
    Context manager scoping a cycle ID.
    Restores the previous cycle ID on exit.

    Usage:
        with CycleContext() as ctx:
            logger.info("flushing")   # carries ctx.cycle_id
    """

    def __init__(self, cycle_id: Optional[str] = None):
        self.cycle_id = cycle_id or generate_cycle_id()
        self._previous_id: Optional[str] = None

    def __enter__(self) -> 'CycleContext':
        self._previous_id = get_cycle_id()
        set_cycle_id(self.cycle_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._previous_id is not None:
            set_cycle_id(self._previous_id)
        else:
            clear_cycle_id()
