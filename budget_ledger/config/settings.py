"""
Configuration Management for Budget Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: Only process-level configuration lives here (where the
vault is, how to log). The ledger's own settings (categories, currencies,
recurring rules) travel with the data in the `_config.md` document and are
passed explicitly to every component as a `LedgerSettings` value.
"""

from functools import lru_cache
from pathlib import Path
from typing import Union

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local document storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_STORAGE_",
        extra="ignore"
    )

    root: Path = Field(
        default=Path("."),
        description="Directory that holds the budget folder (the vault root)"
    )
    data_file: str = Field(
        default=".budget/data.json",
        description="Persisted transaction blob, relative to the root"
    )

    @field_validator('root')
    @classmethod
    def validate_root(cls, v: Path) -> Path:
        """Warn if the root doesn't exist yet (it is created on first write)."""
        if not v.exists():
            import warnings
            warnings.warn(
                f"Storage root not found at {v}. "
                "It will be created on first write."
            )
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="BUDGET_APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    log_json: bool = Field(
        default=True,
        description="Render log lines as JSON (console rendering otherwise)"
    )

    # Ledger defaults used before a settings document has been loaded
    default_locale: str = Field(
        default="en",
        pattern="^(en|pl)$",
        description="Locale used for default categories and document labels"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


class ConfigurationError(Exception):
    """Process configuration is missing or invalid."""
    pass


def validate_all_settings() -> dict[str, Union[bool, str]]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus `<name>_error` with
    the message for every group that failed. Used as a startup check.
    """
    results: dict[str, Union[bool, str]] = {}

    settings = get_settings()

    try:
        _ = settings.storage
        results["storage"] = True
    except ValidationError as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except ValidationError as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
