"""
Derived report models.

None of these are persisted; they are recomputed from the ledger on every
call.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


ZERO = Decimal("0")


class MonthlySummary(BaseModel):
    """
    Aggregates for one (year, month).

    Investments are counted in `by_category` but never in the income or
    expense totals.
    """
    year: int
    month: int = Field(ge=1, le=12)
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    balance: Decimal = ZERO
    by_category: dict[str, Decimal] = Field(default_factory=dict)
    transaction_count: int = 0


class CategoryBreakdown(BaseModel):
    """Spend of one category in a month."""
    category: str
    name: str
    amount: Decimal
    color: str
    icon: str
    subcategories: Optional[list['CategoryBreakdown']] = None


class MonthTrend(BaseModel):
    year: int
    month: int
    income: Decimal = ZERO
    expense: Decimal = ZERO
    balance: Decimal = ZERO


class CategoryTrendPoint(BaseModel):
    year: int
    month: int
    amount: Decimal = ZERO


class CategoryTrend(BaseModel):
    """Month-by-month expense series of a top-level category."""
    category: str
    name: str
    icon: str
    color: str
    data: list[CategoryTrendPoint]
    total: Decimal = ZERO


class YearlySummary(BaseModel):
    year: int
    months: list[MonthTrend]
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    balance: Decimal = ZERO
    savings_rate: float = Field(
        default=0.0,
        description="balance / total_income * 100, 0 without income"
    )


class CategoryAverage(BaseModel):
    category: str
    name: str
    icon: str
    monthly_average: Decimal


class AverageSpending(BaseModel):
    """Average expense magnitude since the earliest recorded expense."""
    daily: Decimal = ZERO
    weekly: Decimal = ZERO
    monthly: Decimal = ZERO
    top_categories: list[CategoryAverage] = Field(default_factory=list)


class BudgetStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"    # at or above 80 % of the limit
    EXCEEDED = "exceeded"  # at or above 100 %


class BudgetProgress(BaseModel):
    """Monthly spend of a category against its `budget_limit`."""
    category: str
    name: str
    icon: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal
    percentage: float
    status: BudgetStatus
