"""
Structured logging setup

Configures structlog for the job. Log lines go to stderr so the final JSON
statistics on stdout can be piped straight into other tools.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure structlog processors and the log level filter.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: "console" for human readable lines, "json" for one JSON object per line
        stream: Output stream (defaults to sys.stderr)
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_step_logger(step: str, name: Optional[str] = None):
    """Logger bound to a job step ("MAIN", "SYNC", "REORGANIZE")."""
    return structlog.get_logger(name).bind(step=step)
