"""Filesystem store of Markdown documents with YAML front matter.

This module provides:
- MarkdownStore: DocumentStore over a vault directory

Front matter of every document is cached in a property index keyed by
path. An entry is reused while the file's mtime and size are unchanged and
reparsed otherwise, so index queries stay cheap on large vaults while
external edits are still picked up.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from listsync.core.types import (
    DocumentExistsError,
    DocumentNotFoundError,
    FrontmatterError,
    StoreError,
)
from listsync.store.base import Document, FrontmatterMutator
from listsync.store.codec import dump_document, parse_document

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIX = ".md"


@dataclass
class _IndexEntry:
    mtime: float
    size: int
    frontmatter: dict[str, Any]


class MarkdownStore:
    """Markdown documents under a root directory.

    Thread-safe: index access and front matter mutations are serialized
    by an internal lock.
    """

    def __init__(self, root: Path | str) -> None:
        """Initialize the store.

        Args:
            root: Vault directory. Created if missing.
        """
        self.root = Path(root).expanduser().resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._index: dict[str, _IndexEntry] = {}

    def __repr__(self) -> str:
        return f"MarkdownStore({str(self.root)!r})"

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def _normalize(self, path: str) -> str:
        pure = PurePosixPath(path.replace("\\", "/").strip("/"))
        if not pure.parts or any(part in ("", ".", "..") for part in pure.parts):
            raise StoreError(f"Invalid document path: {path!r}")
        return str(pure)

    def _full_path(self, path: str) -> Path:
        return self.root / self._normalize(path)

    def _relative(self, full_path: Path) -> str:
        return full_path.relative_to(self.root).as_posix()

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def read(self, path: str) -> Document:
        """Read and parse a document.

        Raises:
            DocumentNotFoundError: If no document exists at path.
            FrontmatterError: If its front matter is malformed.
        """
        full_path = self._full_path(path)
        try:
            text = full_path.read_text(encoding="utf-8")
            stat = full_path.stat()
        except FileNotFoundError:
            raise DocumentNotFoundError(self._normalize(path)) from None

        frontmatter, body = parse_document(text)
        relative = self._normalize(path)
        with self._lock:
            self._index[relative] = _IndexEntry(stat.st_mtime, stat.st_size, dict(frontmatter))
        return Document(path=relative, frontmatter=frontmatter, body=body, mtime=stat.st_mtime)

    def _index_entry(self, relative: str) -> _IndexEntry | None:
        """Get the cached front matter of a document, refreshing it if stale."""
        full_path = self.root / relative
        try:
            stat = full_path.stat()
        except FileNotFoundError:
            with self._lock:
                self._index.pop(relative, None)
            return None

        with self._lock:
            entry = self._index.get(relative)
            if entry is not None and entry.mtime == stat.st_mtime and entry.size == stat.st_size:
                return entry

        try:
            frontmatter, _ = parse_document(full_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except FrontmatterError as e:
            logger.warning("Skipping %s in property index: %s", relative, e)
            frontmatter = {}

        entry = _IndexEntry(stat.st_mtime, stat.st_size, frontmatter)
        with self._lock:
            self._index[relative] = entry
        return entry

    def list_documents(self, folder: str = "") -> list[str]:
        """List document paths under folder (recursively), sorted."""
        base = self.root / self._normalize(folder) if folder.strip("/") else self.root
        if not base.is_dir():
            return []
        return sorted(
            self._relative(p) for p in base.rglob(f"*{DOCUMENT_SUFFIX}") if p.is_file()
        )

    def get_property(self, path: str, key: str) -> Any:
        """Read one front matter property from the index.

        Returns:
            The value, or None if the document or property is missing.
        """
        entry = self._index_entry(self._normalize(path))
        if entry is None:
            return None
        return entry.frontmatter.get(key)

    def query(self, folder: str, key: str, value: Any) -> list[str]:
        """Find documents in folder whose property key equals value."""
        matches = []
        for path in self.list_documents(folder):
            entry = self._index_entry(path)
            if entry is not None and entry.frontmatter.get(key) == value:
                matches.append(path)
        return matches

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def ensure_folder(self, folder: str) -> None:
        if folder.strip("/"):
            self._full_path(folder).mkdir(parents=True, exist_ok=True)

    def create(self, path: str, content: str) -> Document:
        """Create a new document.

        Raises:
            DocumentExistsError: If a file already exists at path.
        """
        relative = self._normalize(path)
        full_path = self.root / relative
        full_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(full_path, "x", encoding="utf-8", newline="") as f:
                f.write(content)
        except FileExistsError:
            raise DocumentExistsError(relative) from None

        logger.debug("Created %s", relative)
        return self.read(relative)

    def _write_atomic(self, full_path: Path, content: str) -> None:
        tmp_path = full_path.with_suffix(full_path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
            os.replace(tmp_path, full_path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise StoreError(f"Failed to write {full_path}: {e}") from e

    def mutate_frontmatter(self, path: str, mutator: FrontmatterMutator) -> Document:
        """Modify a document's front matter in place.

        The mutator receives the current front matter dict and edits it.
        The result is written through a temporary file and renamed over the
        original; the body is kept byte for byte.

        Raises:
            DocumentNotFoundError: If no document exists at path.
            FrontmatterError: If the existing front matter is malformed.
        """
        relative = self._normalize(path)
        full_path = self.root / relative
        with self._lock:
            document = self.read(relative)
            frontmatter = dict(document.frontmatter)
            mutator(frontmatter)
            self._write_atomic(full_path, dump_document(frontmatter, document.body))
            logger.debug("Updated front matter of %s", relative)
            return self.read(relative)
