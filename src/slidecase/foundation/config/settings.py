"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from slidecase.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.api.base_url
    'https://slides.googleapis.com/v1'
    >>> settings.batch.default_on_error
    'stop'

    # Or with environment variables:
    # SLIDECASE_API_ACCESS_TOKEN=ya29....
    # SLIDECASE_LOG_LEVEL=DEBUG
    # SLIDECASE_BATCH_DEFAULT_ON_ERROR=continue
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, PositiveFloat, SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """Slides REST API client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SLIDECASE_API_",
        extra="ignore",
    )

    base_url: str = Field(default="https://slides.googleapis.com/v1", description="Slides API root")
    timeout: PositiveFloat = Field(default=30.0, description="Request timeout in seconds")
    access_token: SecretStr | None = Field(default=None, description="OAuth2 bearer token")

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


class TranslateSettings(BaseSettings):
    """Cloud Translation client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SLIDECASE_TRANSLATE_",
        extra="ignore",
    )

    base_url: str = Field(
        default="https://translation.googleapis.com/language/translate/v2",
        description="Translation v2 endpoint",
    )
    api_key: SecretStr | None = Field(default=None, description="API key, bearer token used when unset")
    timeout: PositiveFloat = 30.0


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SLIDECASE_LOG_",
        extra="ignore",
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class BatchSettings(BaseSettings):
    """Batch orchestration defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SLIDECASE_BATCH_",
        extra="ignore",
    )

    default_on_error: Literal["stop", "continue", "rollback"] = "stop"


class SlidecaseSettings(BaseSettings):
    """Root settings for slidecase.

    Loads configuration from environment variables with SLIDECASE_ prefix.
    Supports nested configuration and .env files.

    Example environment variables:
        SLIDECASE_ENVIRONMENT=production
        SLIDECASE_API_TIMEOUT=60
        SLIDECASE_LOG_FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="SLIDECASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    environment: Literal["development", "staging", "production"] = "development"
    server_name: str = "slidecase"
    transport: Literal["stdio", "sse", "streamable-http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = Field(default=8080, ge=1, le=65535)

    api: ApiSettings = Field(default_factory=ApiSettings)
    translate: TranslateSettings = Field(default_factory=TranslateSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_env(cls, v: str) -> str:
        """Normalize environment name to lowercase."""
        return v.lower() if isinstance(v, str) else v

    @computed_field
    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> SlidecaseSettings:
    """Get the global settings instance (cached)."""
    return SlidecaseSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
