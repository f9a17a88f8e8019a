"""
Structured logging configuration using structlog.

Console output while developing, JSON lines when ``LOG_JSON_FORMAT`` is set,
so calculation traces can be piped into log tooling.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from structlog.typing import Processor

    from core.config import Settings


def _stderr_logger(*_args: object) -> structlog.PrintLogger:
    """Create a logger bound to the current stderr, so redirections are honored."""
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(
    *,
    json_format: bool = False,
    log_level: str = "INFO",
) -> None:
    """
    Configure structlog for the calculator.

    Args:
        json_format: Render JSON lines instead of the colored console format.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    level = logging.getLevelName(log_level.upper())

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_format:
        renderers: list[Processor] = [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    # Logs go to stderr; stdout is reserved for calculation output.
    structlog.configure(
        processors=[*shared_processors, *renderers],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)


def configure_from_settings(settings: Settings) -> None:
    """Configure logging from settings; production logs JSON, debug logs everything."""
    configure_logging(
        json_format=settings.logging.json_format or settings.is_production,
        log_level="DEBUG" if settings.debug else settings.logging.level,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structlog logger.

    Args:
        name: Optional logger name (typically __name__).

    Returns:
        A bound structlog logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: object) -> None:
    """
    Bind context variables included in every later log line.

    Args:
        **kwargs: Key-value pairs to bind, e.g. ``command="goal-seek"``.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context variables."""
    structlog.contextvars.clear_contextvars()
