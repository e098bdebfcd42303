"""Observability for slidecase: structured logging."""

from .logging import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    LogEvent,
    LogRenderer,
    NoOpRenderer,
    configure_logging,
    get_logger,
    log_context,
)

__all__ = [
    "BoundLogger", "ConsoleRenderer", "JsonRenderer", "LogEvent", "LogRenderer", "NoOpRenderer",
    "configure_logging", "get_logger", "log_context",
]
