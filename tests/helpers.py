"""Shared test helpers: record factory and an in-memory document store."""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from listsync.core.types import DocumentExistsError, DocumentNotFoundError, MediaRecord
from listsync.store.base import Document, FrontmatterMutator
from listsync.store.codec import parse_document


def make_record(**overrides: Any) -> MediaRecord:
    """Build the "Attack on Titan" record, with overrides."""
    data: dict[str, Any] = {
        "provider": "mal",
        "category": "anime",
        "externalId": 1245,
        "title": "Attack on Titan",
        "updatedAt": "2024-01-01T00:00:00Z",
    }
    data.update(overrides)
    return MediaRecord.from_dict(data)


class InMemoryStore:
    """DocumentStore kept in a dict, with optional artificial latency.

    Mutations are deliberately not serialized by the store, so tests can
    observe whether callers serialize them. ``max_concurrent_writes``
    records the highest number of create/mutate calls seen in flight.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.documents: dict[str, Document] = {}
        self.writes: list[str] = []
        self.max_concurrent_writes = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    @contextmanager
    def _writing(self, path: str) -> Iterator[None]:
        with self._lock:
            self._in_flight += 1
            self.max_concurrent_writes = max(self.max_concurrent_writes, self._in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            yield
        finally:
            with self._lock:
                self._in_flight -= 1
                self.writes.append(path)

    def add(self, path: str, frontmatter: dict[str, Any] | None = None, body: str = "") -> None:
        """Insert a document directly, bypassing write tracking."""
        self.documents[path] = Document(path=path, frontmatter=dict(frontmatter or {}), body=body)

    def read(self, path: str) -> Document:
        try:
            document = self.documents[path]
        except KeyError:
            raise DocumentNotFoundError(path) from None
        return Document(path, dict(document.frontmatter), document.body, document.mtime)

    def exists(self, path: str) -> bool:
        return path in self.documents

    def create(self, path: str, content: str) -> Document:
        if path in self.documents:
            raise DocumentExistsError(path)
        with self._writing(path):
            if path in self.documents:
                raise DocumentExistsError(path)
            frontmatter, body = parse_document(content)
            self.documents[path] = Document(path=path, frontmatter=frontmatter, body=body)
        return self.read(path)

    def mutate_frontmatter(self, path: str, mutator: FrontmatterMutator) -> Document:
        document = self.read(path)
        with self._writing(path):
            frontmatter = dict(document.frontmatter)
            mutator(frontmatter)
            self.documents[path] = Document(path=path, frontmatter=frontmatter, body=document.body)
        return self.read(path)

    def list_documents(self, folder: str = "") -> list[str]:
        prefix = f"{folder.strip('/')}/" if folder.strip("/") else ""
        return sorted(p for p in self.documents if p.startswith(prefix))

    def query(self, folder: str, key: str, value: Any) -> list[str]:
        return [p for p in self.list_documents(folder) if self.documents[p].frontmatter.get(key) == value]

    def get_property(self, path: str, key: str) -> Any:
        document = self.documents.get(path)
        return document.frontmatter.get(key) if document else None

    def ensure_folder(self, folder: str) -> None:
        pass
