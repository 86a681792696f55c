"""Environment-based configuration using pydantic-settings.

Example:
    >>> from toolwire.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.execution.timeout is None
    True
    >>> settings.logging.level
    'INFO'

    # Or with environment variables:
    # TOOLWIRE_EXECUTION_TIMEOUT=30
    # TOOLWIRE_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, PositiveFloat, PositiveInt, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExecutionSettings(BaseSettings):
    """Execution pipeline defaults."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLWIRE_EXECUTION_",
        extra="ignore",
    )

    timeout: PositiveFloat | None = Field(default=None, description="Per-call timeout in seconds (None = no timeout)")
    max_error_length: PositiveInt = Field(default=500, description="Max characters of an execution error message")


class SchemaSettings(BaseSettings):
    """Schema engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLWIRE_SCHEMA_",
        extra="ignore",
    )

    cache_enabled: bool = True
    additional_properties: bool = Field(
        default=False,
        description="Value emitted as additionalProperties on record schemas",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TOOLWIRE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class ToolwireSettings(BaseSettings):
    """Root settings for toolwire.

    Loads configuration from environment variables with TOOLWIRE_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        TOOLWIRE_EXECUTION_TIMEOUT=10
        TOOLWIRE_SCHEMA_CACHE_ENABLED=false
        TOOLWIRE_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOLWIRE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    schemas: SchemaSettings = Field(default_factory=SchemaSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @computed_field
    @property
    def has_timeout(self) -> bool:
        """Whether calls are bounded by a default timeout."""
        return self.execution.timeout is not None


@lru_cache(maxsize=1)
def get_settings() -> ToolwireSettings:
    """Get the global settings instance (cached)."""
    return ToolwireSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
