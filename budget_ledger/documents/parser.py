"""
Month Document Parser

The inverse of the generator: finds the transaction table in a month
document and turns its rows back into transaction candidates.

Documents may have been edited by hand, so the parser is lenient:
- Any prose before or after the table is ignored
- The header is recognized in every supported locale
- A malformed row is skipped, never fatal

DESIGN DECISION: The rendered category (`🍕 Food`) is mapped back to an
id by string matching, which is lossy. All of that guesswork lives in
`resolve_category` so the policy can be read (and changed) in one place.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Sequence

import structlog
from pydantic import ValidationError

from budget_ledger.documents.markers import (
    EMPTY_DESCRIPTION,
    EXCLUDED_MARKER,
    FALLBACK_CATEGORY,
    INCOME_MARKER,
    INVESTMENT_MARKER,
    display_sign,
)
from budget_ledger.locale import all_header_labels
from budget_ledger.models.settings import LedgerSettings
from budget_ledger.models.transaction import (
    Category,
    TransactionCandidate,
    TransactionType,
)

logger = structlog.get_logger(__name__)

MIN_CELLS = 5

_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_SEPARATOR_RE = re.compile(r"^\|?[\s:|-]+\|?$")
_AMOUNT_RE = re.compile(r"([+-])?\s*(\d[\d,]*(?:\.\d+)?)")
_CURRENCY_RE = re.compile(r"(?<![A-Za-z])([A-Z]{3})(?![A-Za-z])")


def split_row(line: str) -> list[str]:
    """Cells of a table row: trimmed, unescaped, empty cells dropped."""
    cells = [cell.strip().replace("\\|", "|") for cell in _CELL_SPLIT_RE.split(line.strip())]
    return [cell for cell in cells if cell]


def _is_table_line(line: str) -> bool:
    return line.strip().startswith("|")


def _find_header(lines: Sequence[str]) -> Optional[int]:
    date_labels, type_labels = all_header_labels()
    for index, line in enumerate(lines):
        if not _is_table_line(line):
            continue
        cells = split_row(line)
        if len(cells) >= 2 and cells[0] in date_labels and cells[1] in type_labels:
            return index
    return None


def parse_type(marker: str) -> TransactionType:
    if INCOME_MARKER in marker:
        return TransactionType.INCOME
    if INVESTMENT_MARKER in marker:
        return TransactionType.INVESTMENT
    return TransactionType.EXPENSE


def parse_amount(
    cell: str,
    transaction_type: TransactionType,
) -> Optional[tuple[Decimal, Optional[str]]]:
    """
    (signed amount, currency) from an amount cell.

    The sign is read relative to the sign the generator writes for the
    type: `-42.50` on an expense row is 42.50, `+42.50` on an expense row
    is -42.50. Unsigned amounts are taken as written.
    """
    match = _AMOUNT_RE.search(cell)
    if not match:
        return None
    sign, digits = match.groups()
    try:
        value = Decimal(digits.replace(",", ""))
    except InvalidOperation:
        return None
    if sign and sign != display_sign(transaction_type):
        value = -value

    currency_match = _CURRENCY_RE.search(cell)
    return value, currency_match.group(1) if currency_match else None


def parse_description(cell: str) -> tuple[str, bool]:
    """(description, exclude_from_stats)."""
    excluded = EXCLUDED_MARKER in cell
    if excluded:
        cell = cell.replace(EXCLUDED_MARKER, "").strip()
    if cell == EMPTY_DESCRIPTION:
        cell = ""
    return cell, excluded


def slugify(text: str) -> str:
    slug = re.sub(r"\s+", "-", text.strip().lower())
    slug = re.sub(r"[^\w-]", "", slug)
    return slug.strip("-_")


def resolve_category(display: str, categories: Sequence[Category]) -> str:
    """
    Category id for a rendered category cell.

    In order:
    1. exact `icon name` match
    2. exact id (hand-typed, or a deleted category rendered raw)
    3. a subcategory name contained in the text
    4. a top-level category name contained in the text
    5. a category icon contained in the text (first in list order wins)
    6. the slugified text, or `other-expense` if nothing is left
    """
    text = display.strip()

    for category in categories:
        if text == category.display:
            return category.id
    for category in categories:
        if text == category.id:
            return category.id
    for category in categories:
        if category.parent_id and category.name in text:
            return category.id
    for category in categories:
        if not category.parent_id and category.name in text:
            return category.id
    for category in categories:
        if category.icon and category.icon in text:
            return category.id

    return slugify(text) or FALLBACK_CATEGORY


def parse_row(
    cells: Sequence[str],
    settings: LedgerSettings,
) -> Optional[TransactionCandidate]:
    """A candidate from one row's cells, or None if the row is unusable."""
    if len(cells) < MIN_CELLS:
        return None

    date_cell, type_cell, category_cell, description_cell, amount_cell = cells[:MIN_CELLS]
    if not date_cell:
        return None
    try:
        txn_date = date.fromisoformat(date_cell)
    except ValueError:
        return None

    transaction_type = parse_type(type_cell)
    parsed_amount = parse_amount(amount_cell, transaction_type)
    if parsed_amount is None:
        return None
    amount, currency = parsed_amount
    if amount <= 0:
        return None

    description, excluded = parse_description(description_cell)

    try:
        return TransactionCandidate(
            date=txn_date,
            amount=amount,
            type=transaction_type,
            category=resolve_category(category_cell, settings.categories),
            description=description,
            currency=currency or settings.default_currency,
            exclude_from_stats=excluded,
        )
    except ValidationError:
        return None


def parse_month_document(
    text: str,
    settings: LedgerSettings,
) -> list[TransactionCandidate]:
    """
    Candidates from the transaction table of a month document.

    Returns an empty list when the document has no transaction table.
    """
    lines = text.splitlines()
    header = _find_header(lines)
    if header is None:
        return []

    start = header + 1
    if start < len(lines) and _SEPARATOR_RE.match(lines[start].strip()):
        start += 1

    candidates = []
    skipped = 0
    for line in lines[start:]:
        if not _is_table_line(line):
            break
        candidate = parse_row(split_row(line), settings)
        if candidate is None:
            skipped += 1
            continue
        candidates.append(candidate)

    if skipped:
        logger.debug("month_document_rows_skipped", skipped=skipped, parsed=len(candidates))
    return candidates
