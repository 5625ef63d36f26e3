"""Reports and exports computed from the ledger's transactions."""

from budget_ledger.queries.export import export_csv, export_json
from budget_ledger.queries.reports import (
    ReportBuilder,
    shift_month,
    summarize_month,
    transactions_in_month,
)

__all__ = [
    "ReportBuilder",
    "export_csv",
    "export_json",
    "shift_month",
    "summarize_month",
    "transactions_in_month",
]
