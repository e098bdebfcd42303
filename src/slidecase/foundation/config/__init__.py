"""Configuration loaded from SLIDECASE_* environment variables."""

from .settings import (
    ApiSettings,
    BatchSettings,
    LoggingSettings,
    SlidecaseSettings,
    TranslateSettings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "ApiSettings", "BatchSettings", "LoggingSettings", "SlidecaseSettings", "TranslateSettings",
    "get_settings", "clear_settings_cache",
]
