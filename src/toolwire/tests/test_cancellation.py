"""Tests for CancellationToken."""

from __future__ import annotations

import asyncio
import threading

import pytest

from toolwire import CancellationToken
from toolwire.runtime.observability import MemoryRenderer


def test_cancel_is_one_shot() -> None:
    token = CancellationToken()
    assert not token.cancelled
    assert token.cancel("first") is True
    assert token.cancel("second") is False
    assert (token.cancelled, token.reason) == (True, "first")
    assert repr(token) == "CancellationToken(cancelled, reason='first')"


def test_raise_if_cancelled() -> None:
    token = CancellationToken()
    token.raise_if_cancelled()
    token.cancel("stop")
    with pytest.raises(asyncio.CancelledError):
        token.raise_if_cancelled()


def test_callbacks_run_once() -> None:
    token = CancellationToken()
    calls: list[str] = []
    token.register(lambda: calls.append("a"))
    unregister = token.register(lambda: calls.append("b"))
    unregister()
    token.cancel()
    token.cancel()
    assert calls == ["a"]

    token.register(lambda: calls.append("late"))
    assert calls == ["a", "late"]


def test_failing_callback_is_logged(log_entries: MemoryRenderer) -> None:
    token = CancellationToken()
    calls: list[str] = []

    def broken() -> None:
        raise RuntimeError("boom")

    token.register(broken)
    token.register(lambda: calls.append("after"))
    token.cancel()
    assert calls == ["after"]
    (entry,) = log_entries.entries
    assert (entry.level, entry.event) == ("error", "cancellation callback failed")
    assert entry.context["logger"] == "toolwire.cancellation"
    assert "RuntimeError: boom" in entry.context["exc_info"]
    assert entry.context["callback"].endswith("broken")


# ─────────────────────────────────────────────────────────────────────────────
# Linking
# ─────────────────────────────────────────────────────────────────────────────

def test_linked_child_follows_parent() -> None:
    parent = CancellationToken()
    child = CancellationToken.linked(parent)
    parent.cancel("caller")
    assert child.cancelled
    assert child.reason == "caller"


def test_child_cancellation_leaves_parent() -> None:
    parent = CancellationToken()
    child = CancellationToken.linked(parent)
    child.cancel("timeout")
    assert not parent.cancelled


def test_linked_to_several_parents() -> None:
    first, second = CancellationToken(), CancellationToken()
    child = CancellationToken.linked(first, None, second)
    second.cancel("second")
    assert child.reason == "second"
    assert not first.cancelled


def test_linked_to_cancelled_parent_starts_cancelled() -> None:
    parent = CancellationToken()
    parent.cancel("early")
    assert CancellationToken.linked(parent).reason == "early"


def test_dispose_detaches_from_parent() -> None:
    parent = CancellationToken()
    child = CancellationToken.linked(parent)
    child.dispose()
    parent.cancel()
    assert not child.cancelled


# ─────────────────────────────────────────────────────────────────────────────
# Async Waiting
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_cancel_after_fires_with_timeout_reason() -> None:
    token = CancellationToken()
    token.cancel_after(0.01)
    await asyncio.wait_for(token.wait(), timeout=1)
    assert token.reason == "timeout"


@pytest.mark.asyncio
async def test_dispose_stops_timer() -> None:
    token = CancellationToken()
    token.cancel_after(0.01)
    token.dispose()
    await asyncio.sleep(0.03)
    assert not token.cancelled


@pytest.mark.asyncio
async def test_wait_returns_immediately_when_cancelled() -> None:
    token = CancellationToken()
    token.cancel()
    await asyncio.wait_for(token.wait(), timeout=0.1)


@pytest.mark.asyncio
async def test_cancel_from_another_thread_wakes_waiter() -> None:
    token = CancellationToken()
    timer = threading.Timer(0.01, token.cancel, args=("thread",))
    timer.start()
    try:
        await asyncio.wait_for(token.wait(), timeout=1)
    finally:
        timer.join()
    assert token.reason == "thread"
