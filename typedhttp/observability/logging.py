"""Structured logging configuration and correlation context."""

import logging
import sys
import uuid
from typing import TYPE_CHECKING, TextIO

import structlog


if TYPE_CHECKING:
    from typedhttp.settings.app import HttpClientSettings


CORRELATION_ID_CONTEXT_KEY = "correlation_id"


def configure_logging(
    level: int = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for the application.

    Sets up structlog with JSON output format and standard processors
    for timestamps, log levels, and context binding.

    Args:
        level: Logging level (default: INFO).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=output,
        level=level,
    )


def configure_logging_from_settings(
    settings: "HttpClientSettings", output: TextIO = sys.stderr
) -> None:
    """Configure structured logging from the ``log_level`` and ``log_json`` settings.

    Args:
        settings: Loaded settings.
        output: Output stream (default: stderr).
    """
    configure_logging(
        level=getattr(logging, settings.log_level),
        output=output,
        json_format=settings.log_json,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance.

    Args:
        name: Optional logger name.

    Returns:
        Bound logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation id to all subsequent log messages and requests.

    Args:
        correlation_id: Correlation id to bind; a new UUID when omitted.

    Returns:
        The bound correlation id.
    """
    value = correlation_id or str(uuid.uuid4())
    structlog.contextvars.bind_contextvars(**{CORRELATION_ID_CONTEXT_KEY: value})
    return value


def get_correlation_id() -> str | None:
    """Get the correlation id bound to the current context, if any."""
    value = structlog.contextvars.get_contextvars().get(CORRELATION_ID_CONTEXT_KEY)
    return str(value) if value else None


def clear_correlation_context() -> None:
    """Clear the correlation id from the current context."""
    structlog.contextvars.unbind_contextvars(CORRELATION_ID_CONTEXT_KEY)
