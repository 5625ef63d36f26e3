"""
Where month documents live.

    <budget folder>/<YYYY>/<MM>-<localized month name>.md

The month number comes first so the files sort chronologically whatever the
locale.
"""

import re
from typing import Optional

from budget_ledger.locale import month_name
from budget_ledger.models.settings import LedgerSettings

MONTH_DOCUMENT_RE = re.compile(r"(?:^|/)(\d{4})/(\d{2})-[^/]+\.md$")


def year_folder_path(settings: LedgerSettings, year: int) -> str:
    return f"{settings.budget_folder}/{year}"


def month_document_path(settings: LedgerSettings, year: int, month: int) -> str:
    name = month_name(settings.locale, month)
    return f"{year_folder_path(settings, year)}/{month:02d}-{name}.md"


def month_of_document(path: str) -> Optional[tuple[int, int]]:
    """(year, month) encoded in a month document path, or None."""
    match = MONTH_DOCUMENT_RE.search(path)
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month
