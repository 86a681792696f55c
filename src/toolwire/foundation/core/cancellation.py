"""Cooperative cancellation tokens.

A CancellationToken is the signal a caller hands to the execution pipeline.
Tools that want to observe it declare a parameter annotated with
CancellationToken; the binder fills that slot with the pipeline's active token
instead of reading it from the call arguments.

Tokens can be linked: a child created with ``CancellationToken.linked(parent)``
fires whenever its parent does, but cancelling the child (e.g. on a timeout)
leaves the parent untouched. That asymmetry is what lets the executor tell
"the caller gave up" apart from "we stopped waiting".

Example:
    >>> token = CancellationToken()
    >>> child = CancellationToken.linked(token)
    >>> child.cancel("timeout")
    True
    >>> token.cancelled, child.cancelled
    (False, True)
"""

from __future__ import annotations

import asyncio
import threading
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from toolwire.runtime.observability.logging import BoundLogger


def _logger() -> BoundLogger:
    from toolwire.runtime.observability.logging import get_logger
    return get_logger("toolwire.cancellation")


Callback = Callable[[], object]


class CancellationToken:
    """Thread-safe, one-shot cancellation signal.

    Callbacks registered before cancellation run exactly once, on the thread
    that calls cancel(). Callbacks registered after cancellation run
    immediately.
    """

    __slots__ = ("_cancelled", "_reason", "_callbacks", "_lock", "_timer", "_unlinks")

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._callbacks: list[Callback] = []
        self._lock = threading.Lock()
        self._timer: asyncio.TimerHandle | None = None
        self._unlinks: list[Callable[[], None]] = []

    @classmethod
    def linked(cls, *parents: CancellationToken | None) -> CancellationToken:
        """Child token cancelled when any parent is cancelled (not the reverse)."""
        child = cls()
        for parent in parents:
            if parent is not None:
                child._unlinks.append(parent.register(lambda p=parent: child.cancel(p.reason)))
        return child

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> bool:
        """Fire the token. Returns False if it was already cancelled."""
        with self._lock:
            if self._cancelled:
                return False
            self._cancelled = True
            self._reason = reason
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            self._run(callback)
        return True

    def raise_if_cancelled(self) -> None:
        """Raise asyncio.CancelledError if the token has fired."""
        if self._cancelled:
            raise asyncio.CancelledError(self._reason or "cancelled")

    def register(self, callback: Callback) -> Callable[[], None]:
        """Run ``callback`` on cancellation. Returns a function that unregisters it."""
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        self._run(callback)
        return lambda: None

    def cancel_after(self, delay: float) -> None:
        """Cancel from the running loop after ``delay`` seconds (reason ``"timeout"``)."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(delay, self.cancel, "timeout")

    async def wait(self) -> None:
        """Suspend until the token fires."""
        if self._cancelled:
            return
        loop = asyncio.get_running_loop()
        fired: asyncio.Future[None] = loop.create_future()

        def _wake() -> None:
            if not fired.done():
                fired.set_result(None)

        unregister = self.register(lambda: loop.call_soon_threadsafe(_wake))
        try:
            await fired
        finally:
            unregister()

    def dispose(self) -> None:
        """Stop the timer and detach from parents. The token's state is kept."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        unlinks, self._unlinks = self._unlinks, []
        for unlink in unlinks:
            unlink()

    def _unregister(self, callback: Callback) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    @staticmethod
    def _run(callback: Callback) -> None:
        try:
            callback()
        except Exception:
            _logger().exception("cancellation callback failed", callback=getattr(callback, "__qualname__", repr(callback)))

    def __repr__(self) -> str:
        state = f"cancelled, reason={self._reason!r}" if self._cancelled else "active"
        return f"CancellationToken({state})"
