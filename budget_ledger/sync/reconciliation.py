"""
Reconciliation Pass

Pulls hand edits from the month documents back into the ledger.

DESIGN DECISION: This is the only path from text to memory, and it only
ever adds. It never updates or deletes a stored transaction, and it never
regenerates the documents it reads. It is run once at startup, before any
interactive mutation, so nothing else writes those documents meanwhile.

Failures are isolated per document: a document that cannot be read or
parsed is logged and contributes nothing, and the pass moves on.
"""

from typing import TYPE_CHECKING

import structlog

from budget_ledger.audit import AuditLogger, create_correlation_id
from budget_ledger.documents.parser import parse_month_document
from budget_ledger.documents.paths import month_of_document
from budget_ledger.models.transaction import Transaction, TransactionCandidate
from budget_ledger.services.storage import (
    DocumentStorageInterface,
    StorageError,
    parent_of,
)

if TYPE_CHECKING:
    from budget_ledger.ledger.store import LedgerStore

logger = structlog.get_logger(__name__)


class DocumentReconciler:
    """Imports non-duplicate rows from every month document into a store."""

    def __init__(self, storage: DocumentStorageInterface, audit_logger: AuditLogger):
        self._storage = storage
        self._audit_logger = audit_logger

    async def month_documents(self, budget_folder: str) -> list[str]:
        """Month document paths directly under `<folder>/<YYYY>/`, sorted."""
        folder = budget_folder.rstrip("/")
        paths = await self._storage.list(folder)
        return [
            path for path in paths
            if month_of_document(path) is not None
            and parent_of(parent_of(path)) == folder
        ]

    async def sync(self, store: "LedgerStore") -> int:
        """
        Run one import pass.

        Rows are matched against the ledger as it was before the pass. Each
        stored entry accounts for one row only, so two identical rows
        typed by hand both import, and a second pass over the same
        documents imports nothing.

        Returns:
            Number of transactions imported
        """
        correlation_id = create_correlation_id()
        settings = store.settings
        log = logger.bind(correlation_id=str(correlation_id))

        try:
            paths = await self.month_documents(settings.budget_folder)
        except StorageError as e:
            log.warning("budget_folder_unlistable", folder=settings.budget_folder, error=str(e))
            await self._audit_logger.log_sync_completed(0, 0, 1, correlation_id)
            return 0

        unmatched = store.transactions
        imported = 0
        failed = 0
        for path in paths:
            try:
                text = await self._storage.read(path)
            except StorageError as e:
                failed += 1
                log.warning("month_document_unreadable", path=path, error=str(e))
                await self._audit_logger.log_document_import_failed(path, str(e), correlation_id)
                continue

            try:
                candidates = parse_month_document(text, settings)
                fresh = _claim_unmatched(candidates, unmatched)
            except Exception as e:
                failed += 1
                log.exception("month_document_unparseable", path=path)
                await self._audit_logger.log_document_import_failed(path, str(e), correlation_id)
                continue

            for candidate in fresh:
                store.insert_imported(candidate)

            if fresh:
                await self._audit_logger.log_document_imported(
                    path=path,
                    parsed=len(candidates),
                    imported=len(fresh),
                    correlation_id=correlation_id,
                )
            imported += len(fresh)

        await self._audit_logger.log_sync_completed(
            documents=len(paths),
            imported=imported,
            failed=failed,
            correlation_id=correlation_id,
        )
        log.info("documents_synced", documents=len(paths), imported=imported, failed=failed)
        return imported


def _claim_unmatched(
    candidates: list[TransactionCandidate],
    unmatched: list[Transaction],
) -> list[TransactionCandidate]:
    """
    Candidates with no stored counterpart left in `unmatched`.

    A matched stored entry is removed from `unmatched` so it cannot
    account for a second row.
    """
    fresh = []
    for candidate in candidates:
        for index, txn in enumerate(unmatched):
            if txn.same_entry(candidate):
                del unmatched[index]
                break
        else:
            fresh.append(candidate)
    return fresh
