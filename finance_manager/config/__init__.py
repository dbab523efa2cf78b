"""Configuration package."""

from finance_manager.config.settings import (
    AppSettings,
    InsightSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "InsightSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
