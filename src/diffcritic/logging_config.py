"""structlog setup. Only entry points call this; library modules just log."""

import logging
import sys

import structlog


def _level_number(level: str) -> int:
    number = getattr(logging, level.upper(), None)
    if not isinstance(number, int):
        raise ValueError(f"unknown log level: {level!r}")
    return number


def configure_logging(level: str = "INFO", fmt: str = "console") -> None:
    """
    Configure structured logging to stderr.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ...)
        fmt: "console" for human-readable output, "json" for one JSON object per line
    """
    if fmt == "json":
        renderers = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            *renderers,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )
