"""Tests for environment-based configuration."""

from __future__ import annotations

import pytest
from pydantic import BaseModel, ValidationError

from toolwire import clear_settings_cache, get_settings
from toolwire.foundation.schema import get_schema_engine, reset_schema_engine, schema_for


class Item(BaseModel):
    name: str


def test_defaults() -> None:
    settings = get_settings()
    assert settings.execution.timeout is None
    assert settings.execution.max_error_length == 500
    assert settings.schemas.cache_enabled is True
    assert settings.schemas.additional_properties is False
    assert (settings.logging.level, settings.logging.format) == ("INFO", "console")
    assert settings.has_timeout is False
    assert set(type(settings).model_fields) == {"execution", "schemas", "logging"}


def test_settings_are_cached() -> None:
    assert get_settings() is get_settings()
    first = get_settings()
    clear_settings_cache()
    assert get_settings() is not first


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLWIRE_EXECUTION_TIMEOUT", "2.5")
    monkeypatch.setenv("TOOLWIRE_LOG_LEVEL", "debug")
    monkeypatch.setenv("TOOLWIRE_LOG_FORMAT", "json")
    clear_settings_cache()

    settings = get_settings()
    assert settings.execution.timeout == 2.5
    assert settings.has_timeout is True
    assert settings.logging.level == "DEBUG"
    assert settings.logging.format == "json"


@pytest.mark.parametrize("key,value", [
    ("TOOLWIRE_EXECUTION_TIMEOUT", "-1"),
    ("TOOLWIRE_EXECUTION_MAX_ERROR_LENGTH", "0"),
    ("TOOLWIRE_LOG_FORMAT", "xml"),
])
def test_invalid_values_rejected(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)
    clear_settings_cache()
    with pytest.raises(ValidationError):
        get_settings()


# ─────────────────────────────────────────────────────────────────────────────
# Schema Engine Wiring
# ─────────────────────────────────────────────────────────────────────────────

def test_schema_engine_follows_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLWIRE_SCHEMA_ADDITIONAL_PROPERTIES", "true")
    monkeypatch.setenv("TOOLWIRE_SCHEMA_CACHE_ENABLED", "false")
    clear_settings_cache()
    reset_schema_engine()

    assert schema_for(Item).additional_properties is True
    engine = get_schema_engine()
    assert engine.cache_enabled is False
    assert len(engine) == 0


def test_schema_engine_is_shared() -> None:
    assert get_schema_engine() is get_schema_engine()
    schema_for(Item)
    assert len(get_schema_engine()) == 1
