"""Month documents: naming, generation and parsing."""

from budget_ledger.documents.generator import format_amount, generate_month_document
from budget_ledger.documents.parser import parse_month_document, resolve_category
from budget_ledger.documents.paths import month_document_path, month_of_document

__all__ = [
    "format_amount",
    "generate_month_document",
    "month_document_path",
    "month_of_document",
    "parse_month_document",
    "resolve_category",
]
