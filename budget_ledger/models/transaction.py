"""
Core Data Models for Budget Ledger

These models define the strict schemas for every record the ledger keeps.
They are designed to:
1. Enforce the ledger invariants at runtime (positive amounts, real dates)
2. Round-trip through the persisted JSON blob using its camelCase keys
3. Stay small - derived aggregates live in `models.reports`

DESIGN DECISION: Amounts are `Decimal`, never float. Totals shown in the
documents must add up to the cent, and duplicate detection compares amounts
with an absolute tolerance that would be meaningless on binary floats.
"""

import datetime as dt
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


# Absolute amount difference under which two entries count as the same
DUPLICATE_AMOUNT_TOLERANCE = Decimal("0.01")

_CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round a positive amount to cents; documents show exactly two decimals."""
    cents = amount.quantize(_CENT, rounding=ROUND_HALF_UP)
    if cents <= 0:
        raise ValueError("amount must be at least 0.01")
    return cents


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def new_id() -> str:
    """Opaque identifier for a new record."""
    return uuid4().hex


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Direction of a transaction.

    The sign of an amount is never stored; it is implied by the type.
    """
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"  # Money moved aside; not income, not spending


class CategoryType(str, Enum):
    """Which transaction types a category is offered for."""
    INCOME = "income"
    EXPENSE = "expense"
    BOTH = "both"


class LedgerModel(BaseModel):
    """Base for persisted models: snake_case in Python, camelCase on disk."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# TRANSACTIONS
# =============================================================================

class TransactionCandidate(LedgerModel):
    """
    A transaction before it is stored.

    This is what callers hand to `LedgerStore.add`, and what the month
    document parser reconstructs from a table row. It has no identity yet.
    """

    date: dt.date = Field(
        ...,
        description="Calendar date of the transaction (YYYY-MM-DD)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive magnitude; the sign is implied by `type`"
    )
    type: TransactionType
    category: str = Field(
        ...,
        min_length=1,
        description="Category id (may reference a deleted category)"
    )
    description: str = ""
    currency: Optional[str] = Field(
        default=None,
        pattern="^[A-Z]{3}$",
        description="3-letter currency code; the ledger default when absent"
    )
    exclude_from_stats: bool = Field(
        default=False,
        description="Recorded, but left out of aggregate totals"
    )

    @field_validator('currency', mode='before')
    @classmethod
    def normalize_currency(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @field_validator('amount')
    @classmethod
    def amount_in_cents(cls, v: Decimal) -> Decimal:
        return to_cents(v)

    @property
    def year_month(self) -> tuple[int, int]:
        return self.date.year, self.date.month

    def same_entry(self, other: "TransactionCandidate") -> bool:
        """
        Whether `other` records the same entry.

        Same date, type and category, amount within 0.01. The description
        is not part of the key, so a retyped description is still a match.
        """
        return (
            self.date == other.date
            and self.type == other.type
            and self.category == other.category
            and abs(self.amount - other.amount) < DUPLICATE_AMOUNT_TOLERANCE
        )


class Transaction(TransactionCandidate):
    """
    A stored transaction.

    `id` is assigned once at creation and never reused. `created_at` never
    changes; `updated_at` is refreshed on every mutation.
    """

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique transaction ID"
    )
    created_at: dt.datetime = Field(
        default_factory=utc_now,
        description="When the transaction was recorded"
    )
    updated_at: dt.datetime = Field(
        default_factory=utc_now,
        description="Last mutation timestamp"
    )

    def to_candidate(self) -> TransactionCandidate:
        """Drop identity and timestamps."""
        return TransactionCandidate.model_validate(
            self.model_dump(exclude={"id", "created_at", "updated_at"})
        )


class TransactionFilter(BaseModel):
    """
    Criteria for `LedgerStore.filter`.

    All criteria are optional and combined with AND.
    """
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None
    category: Optional[str] = None
    type: str = Field(
        default="all",
        pattern="^(all|income|expense|investment)$",
    )
    search: Optional[str] = Field(
        default=None,
        description="Case-insensitive substring over description and category"
    )


# =============================================================================
# CATEGORIES & RECURRING RULES
# =============================================================================

class Category(LedgerModel):
    """
    A classification bucket.

    Categories nest at most one level deep: a category with a `parent_id`
    cannot itself be a parent. The hierarchy is checked on `LedgerSettings`
    because it needs the whole list.
    """

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="📦", description="Display glyph")
    type: CategoryType
    color: str = Field(default="#95a5a6")
    parent_id: Optional[str] = None
    budget_limit: Optional[Decimal] = Field(
        default=None,
        gt=0,
        description="Optional monthly spending ceiling (expense categories)"
    )

    @field_validator('parent_id', mode='before')
    @classmethod
    def empty_parent_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('budget_limit', mode='before')
    @classmethod
    def zero_limit_is_none(cls, v):
        """A limit of 0 means "no limit"."""
        if v in (0, "0", "", None):
            return None
        return v

    @property
    def display(self) -> str:
        return f"{self.icon} {self.name}"


class RecurringTransaction(LedgerModel):
    """
    Template for monthly auto-generated transactions.

    `last_processed` is owned by the recurring scheduler; it is the date of
    the most recent materialized entry.
    """

    id: str = Field(default_factory=new_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., gt=0)
    type: TransactionType
    category: str = Field(..., min_length=1)
    day_of_month: int = Field(
        ...,
        ge=1,
        le=28,
        description="1-28, so that every month has the day"
    )
    is_active: bool = True
    created_at: Optional[dt.date] = Field(
        default=None,
        description="When the rule was defined (absent on legacy rules)"
    )
    last_processed: Optional[dt.date] = None

    @field_validator('amount')
    @classmethod
    def amount_in_cents(cls, v: Decimal) -> Decimal:
        return to_cents(v)

    @field_validator('created_at', 'last_processed', mode='before')
    @classmethod
    def date_only(cls, v):
        """Accept full ISO timestamps written by older versions."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            return v[:10]
        if isinstance(v, dt.datetime):
            return v.date()
        return v
