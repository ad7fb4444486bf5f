"""Logfire spans for the curator's fetch, learn and dispatch steps.

setup_tracing configures Logfire once per process and instruments
pydantic-ai, so each agent call is traced with its prompts and token
usage. trace_operation opens a span around one step when tracing is
active and otherwise only logs the step's duration at DEBUG.

Logfire is an optional extra (pip install logfire); without it tracing
stays off and everything else works.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

logger = logging.getLogger(__name__)


@dataclass
class TracingContext:
    """Process-wide tracing state."""

    enabled: bool = False
    service_name: str = "news-curator"


_state = TracingContext()


def setup_tracing(
    enabled: bool = False,
    service_name: str = "news-curator",
    token: str = "",
) -> TracingContext:
    """Turn Logfire tracing on or off.

    Returns the resulting state; ``enabled`` is False when Logfire is
    missing or refuses the configuration.
    """
    _state.service_name = service_name
    _state.enabled = False
    if not enabled:
        return _state

    try:
        import logfire
    except ImportError:
        logger.warning("ENABLE_LOGFIRE is set but logfire is not installed | tracing off")
        return _state

    try:
        logfire.configure(service_name=service_name, token=token or None)
        logfire.instrument_pydantic_ai()
    except Exception as e:
        logger.error("Logfire configuration failed | tracing off | error=%s", e)
        return _state

    _state.enabled = True
    logger.info("Tracing on | service=%s", service_name)
    return _state


@contextmanager
def trace_operation(name: str, attributes: dict[str, Any] | None = None) -> Iterator[dict[str, Any]]:
    """Span around one step.

    The yielded dict collects result attributes; they are set on the span
    when the step finishes.
    """
    results: dict[str, Any] = {}
    started = time.monotonic()
    try:
        if not _state.enabled:
            yield results
            return

        import logfire

        with logfire.span(name, **(attributes or {})) as span:
            yield results
            for key, value in results.items():
                span.set_attribute(key, value)
    finally:
        logger.debug("%s took %.2fs | %s", name, time.monotonic() - started, results)
