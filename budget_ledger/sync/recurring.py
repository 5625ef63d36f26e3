"""
Recurring Transaction Scheduler

Backfills monthly transactions for recurring rules.

For each active rule the scheduler walks calendar months forward from the
last materialized one (or from the month before the rule was created) up
to today, and adds one transaction per month, dated on the rule's day.
The current month is only materialized once that day has been reached.

DESIGN DECISION: `last_processed` is the rule's only progress marker and
advances with every materialized month, so the walk is deterministic:
running it twice on the same day adds nothing the second time.

Rules without either date (written by older versions) are stamped with
today's date and left for the next run.
"""

from datetime import date
from typing import TYPE_CHECKING, Optional

import structlog
from pydantic import BaseModel, Field

from budget_ledger.audit import AuditLogger, create_correlation_id
from budget_ledger.documents.markers import RECURRING_MARKER
from budget_ledger.models.transaction import (
    RecurringTransaction,
    Transaction,
    TransactionCandidate,
)
from budget_ledger.queries.reports import shift_month
from budget_ledger.services.storage import StorageError

if TYPE_CHECKING:
    from budget_ledger.ledger.store import LedgerStore

logger = structlog.get_logger(__name__)


class RecurringRunResult(BaseModel):
    """Outcome of one scheduler run."""

    created: list[Transaction] = Field(default_factory=list)
    settings_changed: bool = Field(
        default=False,
        description="A rule was stamped or advanced; settings should be persisted"
    )


def due_dates(rule: RecurringTransaction, today: date) -> list[date]:
    """
    Dates the rule still has to materialize, oldest first.

    Empty for inactive rules and for rules with neither `last_processed`
    nor `created_at`.
    """
    if not rule.is_active:
        return []
    if rule.last_processed is not None:
        year, month = rule.last_processed.year, rule.last_processed.month
    elif rule.created_at is not None:
        year, month = shift_month(rule.created_at.year, rule.created_at.month, -1)
    else:
        return []

    dates = []
    year, month = shift_month(year, month, 1)
    while (year, month) <= (today.year, today.month):
        if (year, month) == (today.year, today.month) and today.day < rule.day_of_month:
            break
        dates.append(date(year, month, rule.day_of_month))
        year, month = shift_month(year, month, 1)
    return dates


class RecurringScheduler:
    """Materializes recurring rules into the ledger through `LedgerStore.add`."""

    def __init__(self, store: "LedgerStore", audit_logger: Optional[AuditLogger] = None):
        self._store = store
        self._audit_logger = audit_logger or AuditLogger()

    async def process(self, today: Optional[date] = None) -> RecurringRunResult:
        """
        Backfill every active rule up to `today` (the store's clock by default).

        The updated rules are handed back to the store through
        `update_settings`; persisting them is up to the caller.
        """
        today = today or self._store.today()
        settings = self._store.settings
        log = logger.bind(correlation_id=str(create_correlation_id()))

        result = RecurringRunResult()
        rules = [rule.model_copy() for rule in settings.recurring_transactions]

        for rule in rules:
            if not rule.is_active:
                continue

            if rule.last_processed is None and rule.created_at is None:
                rule.created_at = today
                result.settings_changed = True
                await self._audit_logger.log_recurring_stamped(rule.id, today.isoformat())
                continue

            for due in due_dates(rule, today):
                txn = await self._materialize(rule, due, log)
                result.created.append(txn)
                rule.last_processed = due
                result.settings_changed = True

        if result.settings_changed:
            self._store.update_settings(
                settings.model_copy(update={"recurring_transactions": rules})
            )
        if result.created:
            log.info("recurring_backfilled", created=len(result.created))
        return result

    async def _materialize(self, rule: RecurringTransaction, due: date, log) -> Transaction:
        candidate = TransactionCandidate(
            date=due,
            amount=rule.amount,
            type=rule.type,
            category=rule.category,
            description=f"{RECURRING_MARKER} {rule.name}",
            currency=self._store.settings.default_currency,
        )
        try:
            txn = await self._store.add(candidate, is_user_action=False)
        except StorageError as e:
            # The transaction is in the ledger; only its document is stale
            log.warning(
                "recurring_document_write_failed",
                rule_id=rule.id,
                date=due.isoformat(),
                error=str(e),
            )
            txn = self._store.transactions[-1]
        await self._audit_logger.log_recurring_materialized(rule.id, rule.name, due.isoformat())
        return txn
