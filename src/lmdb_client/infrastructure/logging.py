"""Structured logging configuration.

Callers that want output invoke :func:`setup_logging` (directly or through
``configure``). If structlog is still unconfigured when the first client
logger is requested, a quiet default is installed: warnings and above go to
stderr, lifecycle events at debug and info are dropped. A host application
that configures structlog itself, before or after, keeps its own setup.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from lmdb_client.infrastructure.config import ObservabilityConfig

LIBRARY_NAME = "lmdb_client"


def _add_library(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("library", LIBRARY_NAME)
    return event_dict


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
    stream: Any = None,
) -> None:
    """
    Set up structured logging with structlog.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
        stream: Output stream, stderr by default so that tools embedding
            the client keep stdout for their own data
    """
    stream = stream or sys.stderr
    numeric_level = getattr(logging, level.upper())

    logging.basicConfig(format="%(message)s", stream=stream, level=numeric_level)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_library,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def _install_quiet_default() -> None:
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def setup_logging_from_config(config: ObservabilityConfig) -> None:
    """Set up logging from the observability section of :class:`Config`."""
    setup_logging(level=config.log_level, log_format=config.log_format)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a bound logger instance.

    Args:
        name: Logger name (module name typically)
        **initial_context: Initial context to bind to the logger

    Returns:
        A bound structlog logger
    """
    if not structlog.is_configured():
        _install_quiet_default()
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
