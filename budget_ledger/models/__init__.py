"""
Data Models Package

This package contains all Pydantic models used in the Budget Ledger.
All data flowing through the system must conform to these schemas.
"""

from budget_ledger.models.transaction import (
    Category,
    CategoryType,
    RecurringTransaction,
    Transaction,
    TransactionCandidate,
    TransactionFilter,
    TransactionType,
)
from budget_ledger.models.settings import (
    LedgerSettings,
    default_categories,
    default_settings,
)
from budget_ledger.models.reports import (
    AverageSpending,
    BudgetProgress,
    BudgetStatus,
    CategoryAverage,
    CategoryBreakdown,
    CategoryTrend,
    CategoryTrendPoint,
    MonthlySummary,
    MonthTrend,
    YearlySummary,
)
from budget_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Category",
    "CategoryType",
    "RecurringTransaction",
    "Transaction",
    "TransactionCandidate",
    "TransactionFilter",
    "TransactionType",
    # Settings
    "LedgerSettings",
    "default_categories",
    "default_settings",
    # Reports
    "AverageSpending",
    "BudgetProgress",
    "BudgetStatus",
    "CategoryAverage",
    "CategoryBreakdown",
    "CategoryTrend",
    "CategoryTrendPoint",
    "MonthlySummary",
    "MonthTrend",
    "YearlySummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
