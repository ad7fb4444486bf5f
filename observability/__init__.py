"""Logging and optional tracing for the curator.

setup_logging / set_run_context:
    Console and rotating-file logging with run-id propagation.

setup_tracing / trace_operation:
    Optional Logfire spans around fetch, learn and dispatch.

Example:
    >>> from observability import setup_tracing, trace_operation
    >>> setup_tracing(enabled=True)
    >>> with trace_operation("fetch_digest") as attrs:
    ...     attrs["items"] = 10
"""

from observability.logging import setup_logging, set_run_context, clear_context
from observability.tracing import setup_tracing, trace_operation, TracingContext

__all__ = [
    "setup_logging",
    "set_run_context",
    "clear_context",
    "setup_tracing",
    "trace_operation",
    "TracingContext",
]
