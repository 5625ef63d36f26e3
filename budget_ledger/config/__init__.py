"""Configuration package."""

from budget_ledger.config.settings import (
    AppSettings,
    ConfigurationError,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ConfigurationError",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
