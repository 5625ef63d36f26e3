"""
Local Filesystem Storage Implementation

Documents are plain files under a root directory, which makes the root
directly usable as (or inside) a notes vault synced by any means.

TRADEOFFS:
- Writes are not atomic across files (a month and its neighbour may
  briefly disagree; both are projections and regenerate on next change)
- Transient OS errors (locked files on network shares, sync clients
  holding a handle) are retried a few times before giving up
"""

from pathlib import Path

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budget_ledger.services.storage.interface import (
    DocumentReadError,
    DocumentStorageInterface,
    DocumentWriteError,
    NotFoundError,
)


class LocalDocumentStorage(DocumentStorageInterface):
    """
    Filesystem implementation of document storage.

    Files are read and written as UTF-8.
    """

    def __init__(self, root: Path):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        return self._root.joinpath(*[part for part in path.split("/") if part])

    async def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    async def read(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFoundError(f"Document not found: {path}")
        try:
            return target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadError(f"Failed to read {path}: {e}")

    async def write(self, path: str, text: str) -> None:
        try:
            self._write_with_retry(self._resolve(path), text)
        except OSError as e:
            raise DocumentWriteError(f"Failed to write {path}: {e}")

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_with_retry(self, target: Path, text: str) -> None:
        target.write_text(text, encoding="utf-8")

    async def list(self, prefix: str) -> list[str]:
        base = self._resolve(prefix)
        if not base.is_dir():
            return []
        return sorted(
            p.relative_to(self._root).as_posix()
            for p in base.rglob("*")
            if p.is_file()
        )

    async def ensure_container(self, path: str) -> None:
        try:
            self._resolve(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DocumentWriteError(f"Failed to create folder {path}: {e}")
