"""Observability: structured logging and correlation context."""

from typedhttp.observability.logging import (
    CORRELATION_ID_CONTEXT_KEY,
    bind_correlation_id,
    clear_correlation_context,
    configure_logging,
    configure_logging_from_settings,
    get_correlation_id,
    get_logger,
)


__all__ = [
    "CORRELATION_ID_CONTEXT_KEY",
    "bind_correlation_id",
    "clear_correlation_context",
    "configure_logging",
    "configure_logging_from_settings",
    "get_correlation_id",
    "get_logger",
]
