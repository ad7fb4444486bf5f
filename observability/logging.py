"""Logging setup with run-id context for the curator.

    - Console output for interactive use, rotating file for history
    - Text or JSON records (LOG_FORMAT)
    - Each unattended run sets a run id that every record carries

Usage:
    >>> from observability.logging import setup_logging, set_run_context
    >>> setup_logging(config)
    >>> set_run_context(run_id="a1b2c3d4")
    >>> logger.info("Digest fetched")  # Includes run_id automatically
"""

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Any

LOG_FILENAME = "curator.log"

run_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("run_id", default="-")

# Attributes every LogRecord has; anything else was passed via extra=
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "run_id"}


def set_run_context(run_id: str) -> None:
    """Tag subsequent log records with ``run_id``."""
    run_id_var.set(run_id)


def clear_context() -> None:
    run_id_var.set("-")


class RunContextFilter(logging.Filter):
    """Copies the current run id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id_var.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shippers.

    Warnings and above include their source location; values passed with
    ``extra=`` are copied as top-level keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": getattr(record, "run_id", "-"),
        }
        if record.levelno >= logging.WARNING:
            data["source"] = f"{record.filename}:{record.lineno}"
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
            except (TypeError, ValueError):
                value = str(value)
            data[key] = value

        return json.dumps(data, ensure_ascii=False)


def _text_formatter(with_date: bool) -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] [%(run_id)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S" if with_date else "%H:%M:%S",
    )


def _file_handler(config: Any) -> logging.Handler:
    """Size-based rotation when LOG_MAX_BYTES is set, else daily."""
    log_file = config.log_dir / LOG_FILENAME
    if config.log_max_bytes > 0:
        return RotatingFileHandler(
            log_file,
            maxBytes=config.log_max_bytes,
            backupCount=config.log_backup_count,
            encoding="utf-8",
        )
    return TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=config.log_backup_count,
        encoding="utf-8",
    )


def setup_logging(config: Any, verbose: bool = False, console: bool = True) -> bool:
    """Configure root logging from the application config.

    Falls back to console-only logging when the log directory is not
    writable.

    Args:
        config: Application configuration with logging settings
        verbose: Force DEBUG on the console
        console: Attach a console handler (the interactive REPL turns it
            down to warnings so notices stay readable)

    Returns:
        True if file logging is enabled, False if console-only
    """
    json_mode = config.log_format == "json"
    context_filter = RunContextFilter()

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    stream = logging.StreamHandler(sys.stderr)
    if verbose:
        stream.setLevel(logging.DEBUG)
    elif console:
        stream.setLevel(getattr(logging, config.log_level, logging.INFO))
    else:
        stream.setLevel(logging.WARNING)
    stream.setFormatter(JsonFormatter() if json_mode else _text_formatter(with_date=False))
    stream.addFilter(context_filter)
    root.addHandler(stream)

    file_logging = False
    try:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        handler = _file_handler(config)
    except OSError as e:
        print(
            f"Warning: Cannot write to log directory '{config.log_dir}': {e}. "
            "Falling back to console-only logging.",
            file=sys.stderr,
        )
    else:
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(JsonFormatter() if json_mode else _text_formatter(with_date=True))
        handler.addFilter(context_filter)
        root.addHandler(handler)
        file_logging = True

    for lib in ("aiohttp", "httpx", "httpcore", "openai", "google_genai", "asyncio"):
        logging.getLogger(lib).setLevel(logging.WARNING)

    return file_logging
