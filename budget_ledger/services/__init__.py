"""
Services Package

Document storage backends and the settings document service.
"""

from budget_ledger.services.config_document import (
    ConfigDocumentService,
    config_document_path,
)

__all__ = [
    "ConfigDocumentService",
    "config_document_path",
]
