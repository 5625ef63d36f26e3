"""
Storage Services Package

Provides the abstract document storage interface and two implementations:
local files and an in-memory dict.
"""

from budget_ledger.services.storage.interface import (
    DocumentReadError,
    DocumentStorageInterface,
    DocumentWriteError,
    NotFoundError,
    StorageError,
    parent_of,
)
from budget_ledger.services.storage.local import LocalDocumentStorage
from budget_ledger.services.storage.memory import InMemoryDocumentStorage

__all__ = [
    # Interfaces
    "DocumentStorageInterface",
    # Exceptions
    "DocumentReadError",
    "DocumentWriteError",
    "NotFoundError",
    "StorageError",
    # Helpers
    "parent_of",
    # Implementations
    "InMemoryDocumentStorage",
    "LocalDocumentStorage",
]
