"""
Transaction export.

CSV for spreadsheets, JSON in the same shape as the persisted blob.
"""

import json
from typing import Iterable

import pandas as pd

from budget_ledger.models.transaction import Transaction

CSV_COLUMNS = [
    "id",
    "date",
    "type",
    "category",
    "description",
    "amount",
    "currency",
    "excludeFromStats",
]


def _records(transactions: Iterable[Transaction]) -> list[dict]:
    return [t.model_dump(mode="json", by_alias=True) for t in transactions]


def export_csv(transactions: Iterable[Transaction]) -> str:
    """One header row, then one row per transaction in the given order."""
    df = pd.DataFrame(_records(transactions), columns=CSV_COLUMNS)
    return df.to_csv(index=False)


def export_json(transactions: Iterable[Transaction], indent: int = 2) -> str:
    return json.dumps(_records(transactions), indent=indent, ensure_ascii=False)
