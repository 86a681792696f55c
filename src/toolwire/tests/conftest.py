"""Shared fixtures: isolated settings, registry, schema engine and logging."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from toolwire.foundation.config import clear_settings_cache
from toolwire.foundation.registry import ToolRegistry, reset_registry
from toolwire.foundation.schema import reset_schema_engine
from toolwire.runtime.observability import MemoryRenderer, configure_logging, set_renderer


@pytest.fixture(autouse=True)
def isolated(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Fresh settings, schema engine and global registry for every test; silent logs."""
    for key in list(os.environ):
        if key.startswith("TOOLWIRE_"):
            monkeypatch.delenv(key)
    clear_settings_cache()
    reset_schema_engine()
    reset_registry()
    configure_logging(format="none")
    yield
    clear_settings_cache()
    reset_schema_engine()
    reset_registry()


@pytest.fixture
def registry() -> ToolRegistry:
    return ToolRegistry()


@pytest.fixture
def log_entries() -> MemoryRenderer:
    """Capture structured log entries emitted during the test."""
    renderer = MemoryRenderer()
    set_renderer(renderer)
    return renderer
