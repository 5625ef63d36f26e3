"""
Report Engine

DESIGN DECISION: Every figure shown to the user is computed here, from the
transactions actually held by the ledger, every time it is asked for.
Nothing is cached and nothing is persisted, so a report can never disagree
with the documents generated from the same state.

Statistics rules used throughout:
- Transactions flagged `exclude_from_stats` are ignored unless a caller
  explicitly asks for them.
- Investments never count as income or expense.
- Category breakdowns only cover expense transactions whose category still
  exists and is not an income category.
"""

from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from budget_ledger.models.reports import (
    ZERO,
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
from budget_ledger.models.settings import LedgerSettings
from budget_ledger.models.transaction import (
    Category,
    CategoryType,
    Transaction,
    TransactionType,
)

BUDGET_WARNING_PERCENT = 80
BUDGET_EXCEEDED_PERCENT = 100
TOP_CATEGORY_COUNT = 5
CENT = Decimal("0.01")


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """(year, month) moved by `delta` calendar months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def transactions_in_month(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> list[Transaction]:
    return [t for t in transactions if t.date.year == year and t.date.month == month]


def summarize_month(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
    include_excluded: bool = False,
) -> MonthlySummary:
    """Monthly totals over `transactions` (any month; filtered here)."""
    total_income = ZERO
    total_expense = ZERO
    by_category: dict[str, Decimal] = {}
    count = 0

    for txn in transactions_in_month(transactions, year, month):
        if txn.exclude_from_stats and not include_excluded:
            continue
        count += 1
        if txn.type == TransactionType.INCOME:
            total_income += txn.amount
        elif txn.type == TransactionType.EXPENSE:
            total_expense += txn.amount
        by_category[txn.category] = by_category.get(txn.category, ZERO) + txn.amount

    return MonthlySummary(
        year=year,
        month=month,
        total_income=total_income,
        total_expense=total_expense,
        balance=total_income - total_expense,
        by_category=by_category,
        transaction_count=count,
    )


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class ReportBuilder:
    """
    Aggregations over one snapshot of the ledger.

    The ledger store builds one per call with its current transactions,
    settings and today's date.
    """

    def __init__(
        self,
        transactions: Sequence[Transaction],
        settings: LedgerSettings,
        today: date,
    ):
        self._transactions = transactions
        self._settings = settings
        self._today = today

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _stat_expenses(self) -> list[Transaction]:
        return [
            t for t in self._transactions
            if t.type == TransactionType.EXPENSE and not t.exclude_from_stats
        ]

    def _expense_totals(self, year: int, month: int) -> dict[str, Decimal]:
        """Expense per category id for one month, in encounter order."""
        totals: dict[str, Decimal] = {}
        for txn in transactions_in_month(self._stat_expenses(), year, month):
            totals[txn.category] = totals.get(txn.category, ZERO) + txn.amount
        return totals

    def _breakdown_categories(self) -> list[Category]:
        return [c for c in self._settings.categories if c.type != CategoryType.INCOME]

    def _rolled_up(self, category: Category, totals: dict[str, Decimal]) -> Decimal:
        amount = totals.get(category.id, ZERO)
        for sub in self._settings.subcategories_of(category.id):
            amount += totals.get(sub.id, ZERO)
        return amount

    @staticmethod
    def _breakdown(category: Category, amount: Decimal) -> CategoryBreakdown:
        return CategoryBreakdown(
            category=category.id,
            name=category.name,
            amount=amount,
            color=category.color,
            icon=category.icon,
        )

    # -------------------------------------------------------------------------
    # Monthly views
    # -------------------------------------------------------------------------

    def monthly_summary(
        self,
        year: int,
        month: int,
        include_excluded: bool = False,
    ) -> MonthlySummary:
        return summarize_month(self._transactions, year, month, include_excluded)

    def category_breakdown(self, year: int, month: int) -> list[CategoryBreakdown]:
        """Flat per-category expense, largest first."""
        totals = self._expense_totals(year, month)
        result = []
        for category_id, amount in totals.items():
            category = self._settings.get_category(category_id)
            if category is None or category.type == CategoryType.INCOME:
                continue
            result.append(self._breakdown(category, amount))
        return sorted(result, key=lambda b: b.amount, reverse=True)

    def hierarchical_category_breakdown(
        self,
        year: int,
        month: int,
    ) -> list[CategoryBreakdown]:
        """
        Per top-level category expense with subcategory spend rolled up.

        Each parent lists its nonzero subcategories, largest first.
        """
        totals = self._expense_totals(year, month)
        result = []
        for parent in self._settings.top_level_categories():
            if parent.type == CategoryType.INCOME:
                continue
            subs = [
                self._breakdown(sub, totals[sub.id])
                for sub in self._settings.subcategories_of(parent.id)
                if totals.get(sub.id, ZERO) > 0
            ]
            amount = totals.get(parent.id, ZERO) + sum((s.amount for s in subs), ZERO)
            if amount <= 0:
                continue
            entry = self._breakdown(parent, amount)
            if subs:
                entry.subcategories = sorted(subs, key=lambda b: b.amount, reverse=True)
            result.append(entry)
        return sorted(result, key=lambda b: b.amount, reverse=True)

    def budget_progress(self, year: int, month: int) -> list[BudgetProgress]:
        """Spend against `budget_limit` for every category that has one."""
        totals = self._expense_totals(year, month)
        result = []
        for category in self._breakdown_categories():
            if category.budget_limit is None:
                continue
            spent = self._rolled_up(category, totals)
            percentage = float(spent / category.budget_limit * 100)
            if percentage >= BUDGET_EXCEEDED_PERCENT:
                status = BudgetStatus.EXCEEDED
            elif percentage >= BUDGET_WARNING_PERCENT:
                status = BudgetStatus.WARNING
            else:
                status = BudgetStatus.OK
            result.append(BudgetProgress(
                category=category.id,
                name=category.name,
                icon=category.icon,
                limit=category.budget_limit,
                spent=spent,
                remaining=max(ZERO, category.budget_limit - spent),
                percentage=percentage,
                status=status,
            ))
        return result

    # -------------------------------------------------------------------------
    # Trends
    # -------------------------------------------------------------------------

    def _last_months(self, n_months: int) -> list[tuple[int, int]]:
        return [
            shift_month(self._today.year, self._today.month, -offset)
            for offset in range(n_months - 1, -1, -1)
        ]

    def trends(self, n_months: int = 6) -> list[MonthTrend]:
        """Last `n_months` months including the current one, oldest first."""
        result = []
        for year, month in self._last_months(n_months):
            summary = self.monthly_summary(year, month)
            result.append(MonthTrend(
                year=year,
                month=month,
                income=summary.total_income,
                expense=summary.total_expense,
                balance=summary.balance,
            ))
        return result

    def category_trends(self, n_months: int = 6) -> list[CategoryTrend]:
        months = self._last_months(n_months)
        monthly_totals = [self._expense_totals(y, m) for y, m in months]

        result = []
        for category in self._settings.top_level_categories():
            if category.type == CategoryType.INCOME:
                continue
            data = [
                CategoryTrendPoint(year=y, month=m, amount=self._rolled_up(category, totals))
                for (y, m), totals in zip(months, monthly_totals)
            ]
            if not any(point.amount > 0 for point in data):
                continue
            result.append(CategoryTrend(
                category=category.id,
                name=category.name,
                icon=category.icon,
                color=category.color,
                data=data,
                total=sum((point.amount for point in data), ZERO),
            ))
        return sorted(result, key=lambda t: t.total, reverse=True)

    def yearly_summary(self, year: int) -> YearlySummary:
        months = []
        for month in range(1, 13):
            summary = self.monthly_summary(year, month)
            months.append(MonthTrend(
                year=year,
                month=month,
                income=summary.total_income,
                expense=summary.total_expense,
                balance=summary.balance,
            ))

        total_income = sum((m.income for m in months), ZERO)
        total_expense = sum((m.expense for m in months), ZERO)
        balance = total_income - total_expense
        savings_rate = float(balance / total_income * 100) if total_income > 0 else 0.0

        return YearlySummary(
            year=year,
            months=months,
            total_income=total_income,
            total_expense=total_expense,
            balance=balance,
            savings_rate=savings_rate,
        )

    def average_spending(self) -> AverageSpending:
        """
        Averages over the span from the earliest expense to today.

        The span is at least one day and one calendar month. Results are
        rounded to cents.
        """
        expenses = self._stat_expenses()
        if not expenses:
            return AverageSpending()

        first = min(t.date for t in expenses)
        days = max(1, (self._today - first).days + 1)
        months = max(
            1,
            (self._today.year - first.year) * 12 + (self._today.month - first.month) + 1,
        )

        total = sum((t.amount for t in expenses), ZERO)
        daily = total / days

        per_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for txn in expenses:
            per_category[txn.category] += txn.amount

        averages = []
        for category_id, amount in per_category.items():
            category = self._settings.get_category(category_id)
            averages.append(CategoryAverage(
                category=category_id,
                name=category.name if category else category_id,
                icon=category.icon if category else "📦",
                monthly_average=_cents(amount / months),
            ))
        averages.sort(key=lambda a: a.monthly_average, reverse=True)

        return AverageSpending(
            daily=_cents(daily),
            weekly=_cents(daily * 7),
            monthly=_cents(total / months),
            top_categories=averages[:TOP_CATEGORY_COUNT],
        )

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def recent_transactions(self, limit: int = 10) -> list[Transaction]:
        return sorted(self._transactions, key=lambda t: t.date, reverse=True)[:limit]
