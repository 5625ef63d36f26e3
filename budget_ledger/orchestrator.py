"""
Main Orchestrator for Budget Ledger

This module ties the components together and defines the lifecycle:
1. Startup (settings document → persisted blob → import hand edits →
   recurring backfill → persist)
2. Interactive use (CRUD and queries against the ledger store)
3. Save (persist the blob)

DESIGN DECISION: The orchestrator enforces the ordering:
- Hand edits are imported once, before any interactive mutation, so the
  importer never races a regeneration of the same document
- Failures during startup are logged and startup carries on
- Failures during a user mutation reach the caller

This is the "glue" a host application (CLI, editor plugin) talks to.
"""

import json
from datetime import date
from typing import Any, Callable, Optional, Union

import structlog
from pydantic import BaseModel, Field

from budget_ledger.audit import AuditLogger, configure_logging
from budget_ledger.config import ConfigurationError, get_settings, validate_all_settings
from budget_ledger.ledger import LedgerStore
from budget_ledger.models.settings import LedgerSettings, default_settings
from budget_ledger.models.transaction import (
    Transaction,
    TransactionCandidate,
    TransactionFilter,
)
from budget_ledger.queries.export import export_csv, export_json
from budget_ledger.services.config_document import ConfigDocumentService
from budget_ledger.services.storage import (
    DocumentStorageInterface,
    LocalDocumentStorage,
    StorageError,
    parent_of,
)
from budget_ledger.sync.recurring import RecurringRunResult, RecurringScheduler

logger = structlog.get_logger(__name__)

DEFAULT_DATA_PATH = ".budget/data.json"


class StartupResult(BaseModel):
    """What `BudgetEngine.start` did."""

    settings_source: str = Field(
        default="defaults",
        pattern="^(document|defaults|migrated)$",
        description="Where the active settings came from"
    )
    transactions_loaded: int = 0
    imported: int = 0
    recurring_created: int = 0


class BudgetEngine:
    """
    The outward surface of the ledger.

    Owns one `LedgerStore`, the recurring scheduler and the settings
    document service, all sharing one storage backend and audit logger.

    Flow:
    1. `start()` once
    2. CRUD and queries (`store` exposes every report)
    3. `save()` whenever the host wants the blob persisted
    """

    def __init__(
        self,
        storage: DocumentStorageInterface,
        settings: Optional[LedgerSettings] = None,
        data_path: str = DEFAULT_DATA_PATH,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], date] = date.today,
    ):
        self._storage = storage
        self._data_path = data_path
        self._audit_logger = audit_logger or AuditLogger()
        self._config_service = ConfigDocumentService(storage, self._audit_logger)
        self.store = LedgerStore(
            settings or default_settings(),
            storage,
            audit_logger=self._audit_logger,
            clock=clock,
        )
        self._scheduler = RecurringScheduler(self.store, self._audit_logger)

    @property
    def settings(self) -> LedgerSettings:
        return self.store.settings

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> StartupResult:
        """
        Bring the ledger up to date with what is on disk.

        Never raises on storage problems; each step that fails is logged
        and skipped.
        """
        result = StartupResult()

        result.settings_source = await self._load_settings()

        blob = await self._read_blob()
        loaded = self.store.load_transactions(blob)
        result.transactions_loaded = len(loaded)
        if blob is not None:
            raw = blob.get("transactions") if isinstance(blob, dict) else None
            skipped = len(raw) - len(loaded) if isinstance(raw, list) else 0
            await self._audit_logger.log_transactions_loaded(len(loaded), skipped)

        result.imported = await self.store.sync_from_documents()

        recurring = await self.process_recurring()
        result.recurring_created = len(recurring.created)

        if result.imported or result.recurring_created:
            try:
                await self.save()
            except StorageError as e:
                logger.warning("startup_save_failed", error=str(e))
                await self._audit_logger.log_error("startup_save_failed", str(e))

        logger.info("engine_started", **result.model_dump())
        return result

    async def _load_settings(self) -> str:
        current = self.store.settings
        loaded = await self._config_service.load(current.budget_folder, base=current)
        if loaded is not None:
            self.store.update_settings(loaded)
            return "document"

        if await self._config_service.exists(current.budget_folder):
            # Present but corrupt: keep what we have, do not overwrite it
            return "defaults"

        try:
            await self._config_service.save(current, reason="created")
        except StorageError as e:
            logger.warning("settings_document_create_failed", error=str(e))
            return "defaults"
        return "migrated"

    async def _read_blob(self) -> Optional[dict[str, Any]]:
        try:
            if not await self._storage.exists(self._data_path):
                return None
            text = await self._storage.read(self._data_path)
        except StorageError as e:
            logger.warning("data_file_unreadable", path=self._data_path, error=str(e))
            return None

        try:
            blob = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("data_file_corrupt", path=self._data_path, error=str(e))
            return None
        return blob if isinstance(blob, dict) else None

    async def save(self) -> None:
        """
        Persist the transaction blob.

        Raises:
            StorageError: If the blob cannot be written
        """
        container = parent_of(self._data_path)
        if container:
            await self._storage.ensure_container(container)
        text = json.dumps(self.store.get_data_for_save(), indent=2, ensure_ascii=False)
        await self._storage.write(self._data_path, text)

    async def process_recurring(self, today: Optional[date] = None) -> RecurringRunResult:
        """Run the recurring backfill and persist advanced rules."""
        result = await self._scheduler.process(today)
        if result.settings_changed:
            try:
                await self._config_service.save(self.store.settings, reason="recurring")
            except StorageError as e:
                logger.warning("recurring_settings_save_failed", error=str(e))
                await self._audit_logger.log_error(
                    "recurring_settings_save_failed",
                    str(e),
                    details={"created": len(result.created)},
                )
        return result

    async def update_settings(self, settings: LedgerSettings) -> None:
        """
        Replace the ledger settings and write the settings document.

        Raises:
            StorageError: If the settings document cannot be written
        """
        self.store.update_settings(settings)
        await self._config_service.save(settings)

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def add_transaction(
        self,
        candidate: Union[TransactionCandidate, dict],
    ) -> Transaction:
        return await self.store.add(candidate)

    async def update_transaction(
        self,
        transaction_id: str,
        patch: Union[dict[str, Any], BaseModel],
    ) -> Optional[Transaction]:
        return await self.store.update(transaction_id, patch)

    async def delete_transaction(self, transaction_id: str) -> bool:
        return await self.store.delete(transaction_id)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self.store.get(transaction_id)

    def filter_transactions(
        self,
        criteria: Optional[TransactionFilter] = None,
        **kwargs: Any,
    ) -> list[Transaction]:
        return self.store.filter(criteria, **kwargs)

    # -------------------------------------------------------------------------
    # Export
    # -------------------------------------------------------------------------

    def export_csv(self, criteria: Optional[TransactionFilter] = None) -> str:
        return export_csv(self.store.filter(criteria))

    def export_json(self, criteria: Optional[TransactionFilter] = None) -> str:
        return export_json(self.store.filter(criteria))


def create_engine(
    storage: Optional[DocumentStorageInterface] = None,
) -> BudgetEngine:
    """
    Factory function to create an engine from process configuration.

    Args:
        storage: Storage backend. Defaults to local files under
                 `BUDGET_STORAGE_ROOT`.

    Returns:
        A `BudgetEngine`; call `start()` before use

    Raises:
        ConfigurationError: If the environment holds invalid settings
    """
    status = validate_all_settings()
    failed = [name for name in ("storage", "app") if not status[name]]
    if failed:
        logger.error("settings_invalid", **status)
        raise ConfigurationError(f"Invalid settings: {', '.join(failed)}")

    settings = get_settings()
    app = settings.app
    configure_logging(app.log_level, json=app.log_json)

    storage_settings = settings.storage
    storage = storage or LocalDocumentStorage(storage_settings.root)

    return BudgetEngine(
        storage,
        settings=default_settings(app.default_locale),
        data_path=storage_settings.data_file,
    )
