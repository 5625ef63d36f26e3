"""
Settings document persistence.

Loads and saves `<budget folder>/_config.md` through document storage.

DESIGN DECISION: A settings document that cannot be read or parsed is
treated as absent. `load` returns None and the caller keeps the settings
it already has; a broken config file must never stop the ledger starting.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from budget_ledger.audit import AuditLogger
from budget_ledger.codec.settings_document import (
    CONFIG_FILE_NAME,
    SettingsDocumentError,
    generate_settings_document,
    settings_from_document,
)
from budget_ledger.models.settings import LedgerSettings
from budget_ledger.services.storage import DocumentStorageInterface, StorageError

logger = structlog.get_logger(__name__)


def config_document_path(budget_folder: str) -> str:
    return f"{budget_folder.rstrip('/')}/{CONFIG_FILE_NAME}"


class ConfigDocumentService:
    """Reads and writes the settings document of one budget folder."""

    def __init__(
        self,
        storage: DocumentStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()

    async def exists(self, budget_folder: str) -> bool:
        return await self._storage.exists(config_document_path(budget_folder))

    async def load(
        self,
        budget_folder: str,
        base: LedgerSettings,
    ) -> Optional[LedgerSettings]:
        """
        Settings from the document, merged over `base`.

        Returns None if the document is missing, unreadable or corrupt.
        """
        path = config_document_path(budget_folder)
        if not await self._storage.exists(path):
            return None

        try:
            text = await self._storage.read(path)
        except StorageError as e:
            logger.warning("settings_document_unreadable", path=path, error=str(e))
            return None

        try:
            settings = settings_from_document(text, base)
        except (SettingsDocumentError, ValidationError) as e:
            await self._audit_logger.log_settings_corrupt(path, str(e))
            return None

        await self._audit_logger.log_settings_loaded(path)
        return settings

    async def save(self, settings: LedgerSettings, reason: str = "updated") -> str:
        """
        Write the settings document into `settings.budget_folder`.

        Raises:
            StorageError: If the folder or the document cannot be written
        """
        path = config_document_path(settings.budget_folder)
        await self._storage.ensure_container(settings.budget_folder)
        await self._storage.write(path, generate_settings_document(settings))
        await self._audit_logger.log_settings_saved(path, reason)
        return path
