"""
Ledger Store

DESIGN DECISION: The in-memory transaction list is the single source of
truth. Month documents are a projection of it:
- every mutation regenerates the affected month document(s)
- documents are regenerated from memory, never patched or merged
- text flows back into memory only through `sync_from_documents`

If a document write fails the in-memory change stands and the error is
raised to the caller; the document catches up on the next regeneration
of that month.
"""

from datetime import date
from typing import Any, Callable, Optional, Union

import structlog
from pydantic import BaseModel, ValidationError

from budget_ledger.audit import AuditLogger
from budget_ledger.documents.generator import generate_month_document
from budget_ledger.documents.paths import month_document_path, year_folder_path
from budget_ledger.models.reports import (
    AverageSpending,
    BudgetProgress,
    CategoryBreakdown,
    CategoryTrend,
    MonthlySummary,
    MonthTrend,
    YearlySummary,
)
from budget_ledger.models.settings import LedgerSettings
from budget_ledger.models.transaction import (
    Transaction,
    TransactionCandidate,
    TransactionFilter,
    new_id,
    utc_now,
)
from budget_ledger.queries.reports import ReportBuilder, transactions_in_month
from budget_ledger.services.storage import DocumentStorageInterface, StorageError
from budget_ledger.sync.reconciliation import DocumentReconciler

logger = structlog.get_logger(__name__)

_IMMUTABLE_FIELDS = {"id", "created_at", "updated_at"}


def _field_names_by_key() -> dict[str, str]:
    """Accept both snake_case names and camelCase aliases in patches."""
    names = {}
    for name, field in Transaction.model_fields.items():
        names[name] = name
        if field.alias:
            names[field.alias] = name
    return names


_PATCH_KEYS = _field_names_by_key()


class LedgerStore:
    """
    In-memory authoritative set of transactions.

    Owns CRUD, filtering and every aggregate. Lookups of unknown ids return
    `None` / `False`; they never raise.
    """

    def __init__(
        self,
        settings: LedgerSettings,
        storage: DocumentStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], date] = date.today,
    ):
        self._settings = settings
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock
        self._transactions: list[Transaction] = []

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    @property
    def transactions(self) -> list[Transaction]:
        """A copy of all transactions, in insertion order."""
        return list(self._transactions)

    def today(self) -> date:
        return self._clock()

    def update_settings(self, settings: LedgerSettings) -> None:
        self._settings = settings

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def load_transactions(self, data: Optional[dict[str, Any]]) -> list[Transaction]:
        """
        Replace the ledger with the transactions of a persisted blob.

        Invalid entries and repeated ids are skipped with a warning.
        """
        self._transactions = []
        raw = data.get("transactions") if isinstance(data, dict) else None
        if not isinstance(raw, list):
            return self.transactions

        seen: set[str] = set()
        for entry in raw:
            try:
                txn = Transaction.model_validate(entry)
            except ValidationError as e:
                logger.warning("persisted_transaction_invalid", error=str(e))
                continue
            if txn.id in seen:
                logger.warning("persisted_transaction_duplicate_id", transaction_id=txn.id)
                continue
            seen.add(txn.id)
            self._transactions.append(txn)

        logger.info("transactions_loaded", count=len(self._transactions))
        return self.transactions

    def get_data_for_save(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "transactions": [
                t.model_dump(mode="json", by_alias=True) for t in self._transactions
            ]
        }

    async def sync_from_documents(self) -> int:
        """Import hand edits from every month document. Returns the count."""
        reconciler = DocumentReconciler(self._storage, self._audit_logger)
        return await reconciler.sync(self)

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def get(self, transaction_id: str) -> Optional[Transaction]:
        for txn in self._transactions:
            if txn.id == transaction_id:
                return txn
        return None

    def _index_of(self, transaction_id: str) -> Optional[int]:
        for index, txn in enumerate(self._transactions):
            if txn.id == transaction_id:
                return index
        return None

    def _materialize(self, candidate: Union[TransactionCandidate, dict]) -> Transaction:
        if isinstance(candidate, BaseModel):
            data = candidate.model_dump(exclude=_IMMUTABLE_FIELDS)
        else:
            data = {
                _PATCH_KEYS.get(k, k): v for k, v in candidate.items()
                if _PATCH_KEYS.get(k, k) not in _IMMUTABLE_FIELDS
            }
        if not data.get("currency"):
            data["currency"] = self._settings.default_currency
        now = utc_now()
        return Transaction.model_validate({
            **data,
            "id": self._unused_id(),
            "created_at": now,
            "updated_at": now,
        })

    def _unused_id(self) -> str:
        while True:
            candidate_id = new_id()
            if self.get(candidate_id) is None:
                return candidate_id

    async def add(
        self,
        candidate: Union[TransactionCandidate, dict],
        is_user_action: bool = True,
    ) -> Transaction:
        """
        Store a new transaction and regenerate its month document.

        `is_user_action` is False for entries the scheduler creates.

        Raises:
            pydantic.ValidationError: If the candidate is invalid
            StorageError: If the month document cannot be written
                (the transaction stays in the ledger)
        """
        txn = self._materialize(candidate)
        self._transactions.append(txn)
        await self._audit_logger.log_transaction_added(
            transaction_id=txn.id,
            date=txn.date.isoformat(),
            amount=str(txn.amount),
            transaction_type=txn.type.value,
            is_user_action=is_user_action,
        )
        await self.regenerate_month(*txn.year_month)
        return txn

    def insert_imported(self, candidate: TransactionCandidate) -> Transaction:
        """
        Store a transaction read from a document, without regenerating.

        The document being read is the source of that record, so writing
        it back here would race the importer.
        """
        txn = self._materialize(candidate)
        self._transactions.append(txn)
        return txn

    async def update(
        self,
        transaction_id: str,
        patch: Union[dict[str, Any], BaseModel],
    ) -> Optional[Transaction]:
        """
        Merge `patch` over an existing transaction.

        Returns None if the id is unknown. When the date moves to another
        month both month documents are regenerated.

        Raises:
            pydantic.ValidationError: If the merged record is invalid
            StorageError: If a month document cannot be written
        """
        index = self._index_of(transaction_id)
        if index is None:
            return None
        existing = self._transactions[index]

        if isinstance(patch, BaseModel):
            patch = patch.model_dump(exclude_unset=True)
        changes = {
            _PATCH_KEYS[k]: v for k, v in patch.items()
            if k in _PATCH_KEYS and _PATCH_KEYS[k] not in _IMMUTABLE_FIELDS
        }

        updated = Transaction.model_validate({
            **existing.model_dump(),
            **changes,
            "updated_at": utc_now(),
        })
        self._transactions[index] = updated

        changed_fields = sorted(
            name for name in changes
            if getattr(existing, name) != getattr(updated, name)
        )
        moved = existing.year_month != updated.year_month
        await self._audit_logger.log_transaction_updated(
            transaction_id=transaction_id,
            changed_fields=changed_fields,
            moved_from=existing.date.isoformat() if moved else None,
        )

        months = [updated.year_month]
        if moved:
            months.append(existing.year_month)
        await self._regenerate_all(months)
        return updated

    async def delete(self, transaction_id: str) -> bool:
        """Remove a transaction. False if the id is unknown."""
        index = self._index_of(transaction_id)
        if index is None:
            return False
        txn = self._transactions.pop(index)
        await self._audit_logger.log_transaction_deleted(transaction_id, txn.date.isoformat())
        await self.regenerate_month(*txn.year_month)
        return True

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    async def regenerate_month(self, year: int, month: int) -> Optional[str]:
        """
        Rewrite the month document from memory.

        A month with no transactions and no existing document is left
        alone. Returns the document path, or None if nothing was written.
        """
        path = month_document_path(self._settings, year, month)
        month_transactions = transactions_in_month(self._transactions, year, month)
        try:
            if not month_transactions and not await self._storage.exists(path):
                return None
            await self._storage.ensure_container(self._settings.budget_folder)
            await self._storage.ensure_container(year_folder_path(self._settings, year))
            content = generate_month_document(year, month, month_transactions, self._settings)
            await self._storage.write(path, content)
        except StorageError as e:
            await self._audit_logger.log_document_write_failed(path, str(e))
            raise
        await self._audit_logger.log_document_regenerated(path, len(month_transactions))
        return path

    async def _regenerate_all(self, months: list[tuple[int, int]]) -> None:
        """Regenerate several months; the first failure is raised after all were tried."""
        first_error: Optional[StorageError] = None
        for year, month in months:
            try:
                await self.regenerate_month(year, month)
            except StorageError as e:
                first_error = first_error or e
        if first_error is not None:
            raise first_error

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def filter(
        self,
        criteria: Optional[TransactionFilter] = None,
        **kwargs: Any,
    ) -> list[Transaction]:
        """
        Transactions matching every given criterion, newest first.

        Criteria can be passed as a `TransactionFilter` or as its fields.
        """
        criteria = criteria or TransactionFilter(**kwargs)
        search = criteria.search.lower() if criteria.search else None

        result = []
        for txn in self._transactions:
            if criteria.date_from and txn.date < criteria.date_from:
                continue
            if criteria.date_to and txn.date > criteria.date_to:
                continue
            if criteria.category and txn.category != criteria.category:
                continue
            if criteria.type != "all" and txn.type.value != criteria.type:
                continue
            if search and search not in txn.description.lower() \
                    and search not in txn.category.lower():
                continue
            result.append(txn)

        return sorted(result, key=lambda t: t.date, reverse=True)

    def transactions_for_month(self, year: int, month: int) -> list[Transaction]:
        return transactions_in_month(self._transactions, year, month)

    def find_duplicate(self, candidate: TransactionCandidate) -> Optional[Transaction]:
        """
        An existing transaction that `candidate` would duplicate.

        Same date, type and category, amount within 0.01. The description
        is not part of the key.
        """
        for txn in self._transactions:
            if txn.same_entry(candidate):
                return txn
        return None

    def _reports(self) -> ReportBuilder:
        return ReportBuilder(self._transactions, self._settings, self.today())

    def monthly_summary(
        self,
        year: int,
        month: int,
        include_excluded: bool = False,
    ) -> MonthlySummary:
        return self._reports().monthly_summary(year, month, include_excluded)

    def current_month_summary(self) -> MonthlySummary:
        today = self.today()
        return self.monthly_summary(today.year, today.month)

    def category_breakdown(self, year: int, month: int) -> list[CategoryBreakdown]:
        return self._reports().category_breakdown(year, month)

    def hierarchical_category_breakdown(
        self,
        year: int,
        month: int,
    ) -> list[CategoryBreakdown]:
        return self._reports().hierarchical_category_breakdown(year, month)

    def budget_progress(self, year: int, month: int) -> list[BudgetProgress]:
        return self._reports().budget_progress(year, month)

    def trends(self, n_months: int = 6) -> list[MonthTrend]:
        return self._reports().trends(n_months)

    def category_trends(self, n_months: int = 6) -> list[CategoryTrend]:
        return self._reports().category_trends(n_months)

    def yearly_summary(self, year: int) -> YearlySummary:
        return self._reports().yearly_summary(year)

    def average_spending(self) -> AverageSpending:
        return self._reports().average_spending()

    def recent_transactions(self, limit: int = 10) -> list[Transaction]:
        return self._reports().recent_transactions(limit)
