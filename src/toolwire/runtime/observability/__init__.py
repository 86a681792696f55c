"""Observability: structured logging and execution listeners."""

from .listener import BaseListener, ExecutionListener, LoggingListener, RecordingListener
from .logging import (
    BoundLogger,
    ConsoleRenderer,
    JsonRenderer,
    LogEntry,
    LogRenderer,
    MemoryRenderer,
    NoOpRenderer,
    configure_from_settings,
    configure_logging,
    get_logger,
    log_context,
    set_renderer,
)

__all__ = [
    # Logging
    "BoundLogger", "LogEntry", "log_context", "get_logger",
    "configure_logging", "configure_from_settings", "set_renderer",
    "LogRenderer", "ConsoleRenderer", "JsonRenderer", "NoOpRenderer", "MemoryRenderer",
    # Listeners
    "ExecutionListener", "BaseListener", "LoggingListener", "RecordingListener",
]
