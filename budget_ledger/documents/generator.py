"""
Month Document Generator

Renders one calendar month of the ledger as Markdown:

    # 📊 Budget: March 2024

    ## 📈 Summary

    | 💚 Income | 🔴 Expenses | 📊 Balance |
    |----------:|--------:|-------:|
    | 0.00 USD | 42.50 USD | -42.50 USD |

    ## 📝 Transactions

    | Date | Type | Category | Description | Amount |
    |:-----|:----|:----------|:-----|------:|
    | 2024-03-05 | 🔴 | 🍕 Food | - | -42.50 USD |

The output depends only on the arguments: the same transactions and
settings always give byte-identical text.
"""

from decimal import Decimal
from typing import Iterable, Optional

from budget_ledger.documents.markers import (
    EMPTY_DESCRIPTION,
    EXCLUDED_MARKER,
    TYPE_MARKERS,
    display_sign,
)
from budget_ledger.locale import labels_for, month_name
from budget_ledger.models.settings import LedgerSettings
from budget_ledger.models.transaction import Transaction
from budget_ledger.queries.reports import summarize_month, transactions_in_month


def format_amount(amount: Decimal, currency: Optional[str], default_currency: str) -> str:
    """Two decimals and a space-separated currency code."""
    return f"{amount:.2f} {currency or default_currency}"


def _escape_cell(text: str) -> str:
    return " ".join(text.split()).replace("|", "\\|")


def render_category(category_id: str, settings: LedgerSettings) -> str:
    """`icon name` for known categories, the raw id otherwise."""
    category = settings.get_category(category_id)
    return category.display if category else category_id


def render_row(txn: Transaction, settings: LedgerSettings) -> str:
    description = _escape_cell(txn.description) or EMPTY_DESCRIPTION
    if txn.exclude_from_stats:
        description = f"{description} {EXCLUDED_MARKER}"
    amount = format_amount(txn.amount, txn.currency, settings.default_currency)
    cells = [
        txn.date.isoformat(),
        TYPE_MARKERS[txn.type],
        _escape_cell(render_category(txn.category, settings)),
        description,
        f"{display_sign(txn.type)}{amount}",
    ]
    return "| " + " | ".join(cells) + " |"


def generate_month_document(
    year: int,
    month: int,
    transactions: Iterable[Transaction],
    settings: LedgerSettings,
) -> str:
    """
    Render the month document for (year, month).

    `transactions` may span any months; only those in (year, month) are
    rendered. Rows are sorted by date, newest first; transactions on the
    same day keep their ledger order.
    """
    labels = labels_for(settings.locale)
    month_transactions = transactions_in_month(transactions, year, month)
    summary = summarize_month(month_transactions, year, month)
    currency = settings.default_currency

    month_transactions.sort(key=lambda t: t.date, reverse=True)

    balance_sign = "+" if summary.balance >= 0 else ""
    lines = [
        f"# {labels.month_title} {month_name(settings.locale, month)} {year}",
        "",
        f"## {labels.summary}",
        "",
        f"| {labels.incomes} | {labels.expenses} | {labels.balance} |",
        "|----------:|--------:|-------:|",
        f"| {format_amount(summary.total_income, None, currency)} "
        f"| {format_amount(summary.total_expense, None, currency)} "
        f"| {balance_sign}{format_amount(summary.balance, None, currency)} |",
        "",
    ]

    if month_transactions:
        lines += [
            f"## {labels.transactions}",
            "",
            f"| {labels.date} | {labels.type} | {labels.category} "
            f"| {labels.description} | {labels.amount} |",
            "|:-----|:----|:----------|:-----|------:|",
        ]
        lines += [render_row(txn, settings) for txn in month_transactions]
    else:
        lines.append(f"> {labels.no_transactions_in_month}")

    return "\n".join(lines) + "\n"
