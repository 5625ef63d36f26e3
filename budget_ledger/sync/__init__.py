"""Text-to-memory import and recurring backfill."""

from budget_ledger.sync.reconciliation import DocumentReconciler
from budget_ledger.sync.recurring import RecurringRunResult, RecurringScheduler, due_dates

__all__ = [
    "DocumentReconciler",
    "RecurringRunResult",
    "RecurringScheduler",
    "due_dates",
]
