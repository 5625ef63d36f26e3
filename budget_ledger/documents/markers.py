"""Glyphs shared by the month document generator and parser."""

from budget_ledger.models.transaction import TransactionType

INCOME_MARKER = "💚"
EXPENSE_MARKER = "🔴"
INVESTMENT_MARKER = "📈"

TYPE_MARKERS = {
    TransactionType.INCOME: INCOME_MARKER,
    TransactionType.EXPENSE: EXPENSE_MARKER,
    TransactionType.INVESTMENT: INVESTMENT_MARKER,
}

# Appended to the description of rows left out of the statistics
EXCLUDED_MARKER = "🚫"

# Stands in for an empty description so the cell is never blank
EMPTY_DESCRIPTION = "-"

# Prefix of descriptions written by the recurring scheduler
RECURRING_MARKER = "🔄"

FALLBACK_CATEGORY = "other-expense"


def display_sign(transaction_type: TransactionType) -> str:
    """Sign shown in front of an amount of this type."""
    return "+" if transaction_type == TransactionType.INCOME else "-"
