"""
Logging configuration using structlog for structured, JSON-based logging.

The wizard owns stdout, so log lines go to stderr or to a file. Call
``configure_logging`` once at startup, before any logger is used.
"""

import sys
from pathlib import Path
from typing import Any, TextIO

import structlog


def configure_logging(log_level: str = "WARNING", log_file: Path | None = None) -> None:
    """Configure structured logging with JSON output.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Append logs to this file instead of writing to stderr
    """
    stream: TextIO = sys.stderr
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        stream = open(log_file, "a", encoding="utf-8")  # noqa: SIM115 - lives for the process

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a logger instance.

    Example:
        >>> log = get_logger(__name__)
        >>> log.info("repository_created", name="demo", owner="acme")
    """
    return structlog.get_logger(name)
