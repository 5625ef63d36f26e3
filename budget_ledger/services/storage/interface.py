"""
Abstract Document Storage Interface

DESIGN DECISION: The ledger never talks to a filesystem directly.
It depends on this small interface so that:
1. A note-taking app's vault API can be plugged in behind it
2. Tests run against in-memory storage
3. Local files work out of the box for the CLI/host

Paths are vault-relative strings with forward slashes
(e.g. "Budget/2024/03-March.md"). Every call may suspend.
"""

from abc import ABC, abstractmethod


class DocumentStorageInterface(ABC):
    """
    Abstract interface for the document store the ledger projects into.
    """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """True if a document or container exists at `path`."""
        pass

    @abstractmethod
    async def read(self, path: str) -> str:
        """
        Read a document's text.

        Raises:
            NotFoundError: If no document exists at `path`
            DocumentReadError: If the document cannot be read
        """
        pass

    @abstractmethod
    async def write(self, path: str, text: str) -> None:
        """
        Create or overwrite a document.

        The containing container must exist (see `ensure_container`).

        Raises:
            DocumentWriteError: If the write fails
        """
        pass

    @abstractmethod
    async def list(self, prefix: str) -> list[str]:
        """
        List document paths under `prefix`, recursively, sorted.

        Containers themselves are not listed.
        """
        pass

    @abstractmethod
    async def ensure_container(self, path: str) -> None:
        """Create the container (folder) at `path` and its parents if missing."""
        pass


def parent_of(path: str) -> str:
    """Container part of a document path ("" at the root)."""
    return path.rsplit("/", 1)[0] if "/" in path else ""


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Document not found in storage."""
    pass


class DocumentReadError(StorageError):
    """A document exists but could not be read."""
    pass


class DocumentWriteError(StorageError):
    """A document could not be created or modified."""
    pass
