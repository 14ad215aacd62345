"""Configuration package."""

from coffee_tracker.config.settings import (
    AppSettings,
    CsvStoreSettings,
    GitHubSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CsvStoreSettings",
    "GitHubSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
