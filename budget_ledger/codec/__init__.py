"""Text codecs: scalar values and the settings document."""

from budget_ledger.codec.settings_document import (
    CONFIG_FILE_NAME,
    SettingsDocumentError,
    generate_settings_document,
    parse_settings_document,
    settings_from_document,
)
from budget_ledger.codec.values import format_value, parse_value

__all__ = [
    "CONFIG_FILE_NAME",
    "SettingsDocumentError",
    "format_value",
    "generate_settings_document",
    "parse_settings_document",
    "parse_value",
    "settings_from_document",
]
