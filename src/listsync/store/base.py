"""Document store abstraction.

This module provides:
- Document: One Markdown document (front matter + body)
- DocumentStore: Protocol the sync engine relies on

Paths are POSIX strings relative to the store root (e.g.,
"Media/Anime/Attack on Titan.md").
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

FrontmatterMutator = Callable[[dict[str, Any]], None]


@dataclass
class Document:
    """A document read from the store.

    Attributes:
        path: Path relative to the store root
        frontmatter: Parsed property set
        body: Text after the front matter, verbatim
        mtime: Modification time when read
    """

    path: str
    frontmatter: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    mtime: float = 0.0

    @property
    def name(self) -> str:
        """File name without folder."""
        return self.path.rsplit("/", 1)[-1]

    @property
    def stem(self) -> str:
        """File name without folder and extension."""
        name = self.name
        return name[:-3] if name.endswith(".md") else name


@runtime_checkable
class DocumentStore(Protocol):
    """Storage operations used by the sync engine."""

    def read(self, path: str) -> Document:
        """Read a document. Raises DocumentNotFoundError."""
        ...

    def exists(self, path: str) -> bool: ...

    def create(self, path: str, content: str) -> Document:
        """Create a document. Raises DocumentExistsError if the path is taken."""
        ...

    def mutate_frontmatter(self, path: str, mutator: FrontmatterMutator) -> Document:
        """Apply mutator to the front matter in place and write it atomically.

        The body is preserved verbatim.
        """
        ...

    def query(self, folder: str, key: str, value: Any) -> list[str]:
        """Paths in folder whose front matter has key == value."""
        ...

    def list_documents(self, folder: str) -> list[str]: ...

    def get_property(self, path: str, key: str) -> Any:
        """Cached read of a single front matter property."""
        ...

    def ensure_folder(self, folder: str) -> None: ...
