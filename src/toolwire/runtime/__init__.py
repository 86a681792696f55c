"""Runtime - binding, execution, canonicalization and observability.

Contains: binder, executor, canonical, observability.
"""

from __future__ import annotations

__all__ = [
    # Execution
    "ToolExecutor", "ExecutionState", "execute", "execute_many", "normalize_output",
    # Binding
    "bind",
    # Canonicalization
    "canonicalize", "normalize_arguments",
    # Observability
    "BoundLogger", "get_logger", "configure_logging", "log_context",
    "ExecutionListener", "BaseListener", "LoggingListener", "RecordingListener",
]


def __getattr__(name: str):
    """Lazy imports to avoid circular dependencies."""
    executor_attrs = {"ToolExecutor", "ExecutionState", "execute", "execute_many", "normalize_output"}
    if name in executor_attrs:
        from . import executor
        return getattr(executor, name)

    if name == "bind":
        from . import binder
        return binder.bind

    if name in {"canonicalize", "normalize_arguments"}:
        from . import canonical
        return getattr(canonical, name)

    observability_attrs = {
        "BoundLogger", "get_logger", "configure_logging", "log_context",
        "ExecutionListener", "BaseListener", "LoggingListener", "RecordingListener",
    }
    if name in observability_attrs:
        from . import observability
        return getattr(observability, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
