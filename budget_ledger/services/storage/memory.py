"""
In-memory storage, used by tests and by hosts that keep documents elsewhere.
"""

from typing import Optional

from budget_ledger.services.storage.interface import (
    DocumentReadError,
    DocumentStorageInterface,
    DocumentWriteError,
    NotFoundError,
    parent_of,
)


class InMemoryDocumentStorage(DocumentStorageInterface):
    """
    Dict-backed document storage.

    `fail_writes` / `fail_reads` hold paths whose writes or reads raise,
    so callers' failure handling can be exercised.
    """

    def __init__(self, documents: Optional[dict[str, str]] = None):
        self.documents: dict[str, str] = dict(documents or {})
        self.containers: set[str] = set()
        self.fail_writes: set[str] = set()
        self.fail_reads: set[str] = set()
        self.write_count = 0
        for path in self.documents:
            self._add_containers(parent_of(path))

    def _add_containers(self, path: str) -> None:
        while path:
            self.containers.add(path)
            path = parent_of(path)

    async def exists(self, path: str) -> bool:
        return path in self.documents or path in self.containers

    async def read(self, path: str) -> str:
        if path in self.fail_reads:
            raise DocumentReadError(f"Failed to read {path}")
        try:
            return self.documents[path]
        except KeyError:
            raise NotFoundError(f"Document not found: {path}")

    async def write(self, path: str, text: str) -> None:
        if path in self.fail_writes:
            raise DocumentWriteError(f"Failed to write {path}")
        container = parent_of(path)
        if container and container not in self.containers:
            raise DocumentWriteError(f"Folder does not exist: {container}")
        self.documents[path] = text
        self.write_count += 1

    async def list(self, prefix: str) -> list[str]:
        prefix = prefix.rstrip("/") + "/" if prefix else ""
        return sorted(p for p in self.documents if p.startswith(prefix))

    async def ensure_container(self, path: str) -> None:
        self._add_containers(path.rstrip("/"))
