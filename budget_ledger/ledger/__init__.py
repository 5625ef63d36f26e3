"""The authoritative in-memory ledger."""

from budget_ledger.ledger.store import LedgerStore
from budget_ledger.models.transaction import DUPLICATE_AMOUNT_TOLERANCE

__all__ = ["LedgerStore", "DUPLICATE_AMOUNT_TOLERANCE"]
