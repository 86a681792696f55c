"""Execution pipeline: ToolCall in, exactly one ToolResult out.

States:
    IDLE -> BOUND -> INVOKING -> AWAITING -> COMPLETED | FAILED | CANCELLED | TIMED_OUT

- Lookup and binding failures produce error results; the callable never runs.
- Sync callables run on the loop thread. An awaitable return value
  (coroutine, asyncio future, concurrent future) is awaited.
- A timeout is a linked child of the caller's token: it can stop the wait
  without touching the caller's token, so a timeout becomes an error result
  while caller cancellation propagates as ``asyncio.CancelledError``.
- Every other failure is normalized into an LLM-safe error result.

Example:
    >>> executor = ToolExecutor(registry, timeout=10.0, listeners=[LoggingListener()])
    >>> result = await executor.execute(ToolCall(name="add", arguments={"a": 1, "b": 2}))
    >>> result.output
    '3'
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import inspect
from collections.abc import Iterable, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import orjson
from pydantic_core import to_jsonable_python

from toolwire.foundation.config import get_settings
from toolwire.foundation.core import CancellationToken, ToolCall, ToolResult
from toolwire.foundation.errors import (
    ToolException,
    ToolExecutionError,
    ToolLookupError,
    ToolTimeoutError,
    ToolValidationAggregateError,
)
from toolwire.foundation.registry import ToolRegistry, get_registry

from .binder import bind
from .observability.logging import BoundLogger, get_logger

if TYPE_CHECKING:
    from toolwire.foundation.core import ToolDefinition
    from toolwire.foundation.errors import ToolError

    from .observability.listener import ExecutionListener


class ExecutionState(StrEnum):
    """Lifecycle of a single call."""
    IDLE = "idle"
    BOUND = "bound"
    INVOKING = "invoking"
    AWAITING = "awaiting"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"


# ─────────────────────────────────────────────────────────────────────────────
# Normalization
# ─────────────────────────────────────────────────────────────────────────────

def normalize_output(value: Any) -> str:
    """Canonical text for a tool's return value.

    Strings pass through unchanged; everything else becomes compact JSON
    (``None`` -> ``"null"``). Values with no JSON form fall back to ``str()``.
    """
    if isinstance(value, str):
        return value
    try:
        return orjson.dumps(value, default=to_jsonable_python, option=orjson.OPT_NON_STR_KEYS).decode()
    except TypeError:
        # orjson.JSONEncodeError subclasses TypeError
        return str(value)


def _is_pending(value: object) -> bool:
    return inspect.isawaitable(value) or isinstance(value, concurrent.futures.Future)


def _as_future(value: Any) -> asyncio.Future[Any]:
    if isinstance(value, concurrent.futures.Future):
        return asyncio.wrap_future(value)
    return asyncio.ensure_future(value)


def _consume(fut: asyncio.Future[Any]) -> None:
    """Retrieve an abandoned future's outcome so asyncio does not warn about it."""
    if not fut.cancelled():
        fut.exception()


def _timed_out(external: CancellationToken | None, linked: CancellationToken) -> bool:
    """Whether a CancelledError came from the timeout rather than the caller.

    True only when the linked token fired on its own: the caller's token is
    intact and nobody requested cancellation of the running task.
    """
    if not linked.cancelled or (external is not None and external.cancelled):
        return False
    task = asyncio.current_task()
    return task is None or task.cancelling() == 0


# ─────────────────────────────────────────────────────────────────────────────
# Executor
# ─────────────────────────────────────────────────────────────────────────────

class ToolExecutor:
    """Runs ToolCalls against a registry.

    Args:
        registry: Registry to resolve tools from (defaults to the global registry)
        timeout: Per-call timeout in seconds (defaults to ``TOOLWIRE_EXECUTION_TIMEOUT``; None = unbounded)
        listeners: Initial execution listeners, notified in order
    """

    __slots__ = ("_registry", "_timeout", "_listeners", "_max_error_length", "_log")

    def __init__(
        self,
        registry: ToolRegistry | None = None,
        *,
        timeout: float | None = None,
        listeners: Iterable[ExecutionListener] = (),
    ) -> None:
        settings = get_settings().execution
        self._registry = registry if registry is not None else get_registry()
        self._timeout = timeout if timeout is not None else settings.timeout
        if self._timeout is not None and self._timeout <= 0:
            raise ValueError("timeout must be positive")
        self._max_error_length = settings.max_error_length
        self._listeners: list[ExecutionListener] = list(listeners)
        self._log = get_logger("toolwire.executor")

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def timeout(self) -> float | None:
        return self._timeout

    # ─────────────────────────────────────────────────────────────────
    # Listeners
    # ─────────────────────────────────────────────────────────────────

    @property
    def listeners(self) -> tuple[ExecutionListener, ...]:
        return tuple(self._listeners)

    def add_listener(self, listener: ExecutionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ExecutionListener) -> bool:
        """Detach a listener (matched by identity). Returns True if it was attached."""
        for i, attached in enumerate(self._listeners):
            if attached is listener:
                del self._listeners[i]
                return True
        return False

    def _notify(self, hook: str, *args: object) -> None:
        for listener in tuple(self._listeners):
            try:
                getattr(listener, hook)(*args)
            except Exception:
                self._log.exception("listener failed", listener=type(listener).__name__, hook=hook)

    # ─────────────────────────────────────────────────────────────────
    # Execution
    # ─────────────────────────────────────────────────────────────────

    async def execute(self, call: ToolCall, token: CancellationToken | None = None) -> ToolResult:
        """Execute one call.

        Raises:
            asyncio.CancelledError: ``token`` fired (before or during the call)
        """
        if token is not None:
            token.raise_if_cancelled()
        log = self._log.bind_tool(call.name, call.id)

        definition = self._registry.get(call.name)
        if definition is None:
            return self._fail(call, ToolLookupError(call.name), log, "lookup")

        self._notify("on_invoking", call)
        linked = CancellationToken.linked(token)
        if self._timeout is not None:
            linked.cancel_after(self._timeout)
        try:
            return await self._run(definition, call, token, linked, log)
        except asyncio.CancelledError:
            log.debug("call cancelled", state=ExecutionState.CANCELLED.value)
            raise
        finally:
            linked.dispose()

    async def execute_many(
        self,
        calls: Sequence[ToolCall],
        token: CancellationToken | None = None,
    ) -> list[ToolResult]:
        """Execute calls concurrently. Results are in input order."""
        return list(await asyncio.gather(*(self.execute(call, token) for call in calls)))

    async def _run(
        self,
        definition: ToolDefinition,
        call: ToolCall,
        external: CancellationToken | None,
        linked: CancellationToken,
        log: BoundLogger,
    ) -> ToolResult:
        try:
            args = bind(definition.name, definition.parameters, call.arguments, linked)
        except ToolValidationAggregateError as e:
            return self._fail(call, e, log, "binding")
        log.debug("arguments bound", state=ExecutionState.BOUND.value, count=len(args))

        if external is not None:
            external.raise_if_cancelled()
        try:
            log.debug("invoking", state=ExecutionState.INVOKING.value)
            value = definition.function(*args)
            if _is_pending(value):
                log.debug("awaiting result", state=ExecutionState.AWAITING.value)
                value = await self._await(_as_future(value), external, linked)
        except asyncio.CancelledError:
            # A tool reacting to its own timeout raises CancelledError too
            timeout = self._timeout
            if timeout is None or not _timed_out(external, linked):
                raise
            return self._fail(call, ToolTimeoutError(definition.name, timeout), log, "awaiting", ExecutionState.TIMED_OUT)
        except ToolException as e:
            return self._fail(call, e, log, "invocation")
        except Exception as e:
            error = ToolExecutionError.from_exception(definition.name, e, max_length=self._max_error_length)
            return self._fail(call, error, log, "invocation", cause=type(e).__name__)

        result = ToolResult.ok(call.id, normalize_output(value))
        log.debug("call completed", state=ExecutionState.COMPLETED.value, output_chars=len(result.output))
        self._notify("on_completed", call, result)
        return result

    async def _await(
        self,
        handle: asyncio.Future[Any],
        external: CancellationToken | None,
        linked: CancellationToken,
    ) -> Any:
        """Race ``handle`` against the linked token.

        Raises:
            asyncio.CancelledError: the linked token fired first (timeout or caller)
        """
        waiter = asyncio.ensure_future(linked.wait())
        try:
            done, _ = await asyncio.wait({handle, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            handle.cancel()
            handle.add_done_callback(_consume)
            raise
        finally:
            waiter.cancel()

        if handle in done:
            return handle.result()

        handle.cancel()
        handle.add_done_callback(_consume)
        raise asyncio.CancelledError(linked.reason or "cancelled")

    def _fail(
        self,
        call: ToolCall,
        exc: ToolException,
        log: BoundLogger,
        stage: str,
        state: ExecutionState = ExecutionState.FAILED,
        **extra: str,
    ) -> ToolResult:
        result = ToolResult.failure(call.id, exc)
        error: ToolError = result.error  # type: ignore[assignment]
        log.warning("call failed", state=state.value, stage=stage, code=error.code.value, message=error.message, **extra)
        self._notify("on_error", call, error)
        return result

    def __repr__(self) -> str:
        return f"ToolExecutor(tools={len(self._registry)}, timeout={self._timeout}, listeners={len(self._listeners)})"


# ─────────────────────────────────────────────────────────────────────────────
# Convenience
# ─────────────────────────────────────────────────────────────────────────────

async def execute(
    call: ToolCall,
    token: CancellationToken | None = None,
    *,
    registry: ToolRegistry | None = None,
) -> ToolResult:
    """Execute ``call`` with a default executor over ``registry`` (or the global one)."""
    return await ToolExecutor(registry).execute(call, token)


async def execute_many(
    calls: Sequence[ToolCall],
    token: CancellationToken | None = None,
    *,
    registry: ToolRegistry | None = None,
) -> list[ToolResult]:
    """Execute several calls concurrently with a default executor."""
    return await ToolExecutor(registry).execute_many(calls, token)
