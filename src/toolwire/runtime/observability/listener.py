"""Execution listeners: the observation surface of the pipeline.

Each call notifies listeners at most at three points, in this order:

1. ``on_invoking(call)`` once the tool has been found, before binding
2. ``on_error(call, error)`` if the call fails (lookup, validation, execution, timeout)
3. ``on_completed(call, result)`` if the call succeeds

``on_error`` and ``on_completed`` are mutually exclusive. A call cancelled by
its caller reaches neither. An unknown tool only reaches ``on_error``.
"""

from __future__ import annotations

import time
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .logging import BoundLogger, get_logger

if TYPE_CHECKING:
    from toolwire.foundation.core import ToolCall, ToolResult
    from toolwire.foundation.errors import ToolError


@runtime_checkable
class ExecutionListener(Protocol):
    """Observer of tool calls. Implement any subset by subclassing BaseListener."""

    def on_invoking(self, call: ToolCall) -> None: ...
    def on_error(self, call: ToolCall, error: ToolError) -> None: ...
    def on_completed(self, call: ToolCall, result: ToolResult) -> None: ...


class BaseListener:
    """No-op listener; override only the notifications you need."""

    def on_invoking(self, call: ToolCall) -> None:
        pass

    def on_error(self, call: ToolCall, error: ToolError) -> None:
        pass

    def on_completed(self, call: ToolCall, result: ToolResult) -> None:
        pass


@dataclass(slots=True, eq=False)
class LoggingListener(BaseListener):
    """Log each call with timing and outcome.

    Logs INFO for successful calls and WARNING for failures. Arguments are
    left out unless ``log_arguments`` is set. The start time lives in a
    context variable: every hook of a call runs in that call's task context,
    so a cancelled call leaves nothing behind on the listener.

    Example:
        >>> executor = ToolExecutor(listeners=[LoggingListener(log_arguments=True)])
    """

    log: BoundLogger = field(default_factory=lambda: get_logger("toolwire.calls"))
    log_arguments: bool = False
    _started: ContextVar[tuple[str, float] | None] = field(
        default_factory=lambda: ContextVar("toolwire_call_started", default=None), repr=False,
    )

    def on_invoking(self, call: ToolCall) -> None:
        self._started.set((call.id, time.perf_counter()))
        extra = {"arguments": call.arguments} if self.log_arguments else {}
        self.log.info("tool invoking", tool=call.name, call_id=call.id, **extra)

    def on_error(self, call: ToolCall, error: ToolError) -> None:
        self.log.warning(
            "tool failed", tool=call.name, call_id=call.id,
            code=error.code.value, message=error.message, **self._elapsed(call),
        )

    def on_completed(self, call: ToolCall, result: ToolResult) -> None:
        self.log.info("tool completed", tool=call.name, call_id=call.id, output_chars=len(result.output), **self._elapsed(call))

    def _elapsed(self, call: ToolCall) -> dict[str, float]:
        started = self._started.get()
        if started is None or started[0] != call.id:
            return {}
        self._started.set(None)
        return {"duration_ms": round((time.perf_counter() - started[1]) * 1000, 2)}


@dataclass(slots=True, eq=False)
class RecordingListener(BaseListener):
    """Records notifications as ``(event, call_id)`` pairs, in order."""

    events: list[tuple[str, str]] = field(default_factory=list)
    errors: list[ToolError] = field(default_factory=list)
    results: list[ToolResult] = field(default_factory=list)

    def on_invoking(self, call: ToolCall) -> None:
        self.events.append(("invoking", call.id))

    def on_error(self, call: ToolCall, error: ToolError) -> None:
        self.events.append(("error", call.id))
        self.errors.append(error)

    def on_completed(self, call: ToolCall, result: ToolResult) -> None:
        self.events.append(("completed", call.id))
        self.results.append(result)

    def names(self) -> list[str]:
        return [name for name, _ in self.events]
