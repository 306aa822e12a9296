"""Document lookup for sync identifiers.

This module provides:
- LookupKind: Classification of a lookup
- LookupResult: Classification plus candidate paths
- DocumentMatcher: Finds the document(s) belonging to a record
- select_deterministic: Picks one path from a candidate set

Lookup order:
    1. Property index query for the sync key within the target folder.
       Sync keys survive renames and always win.
    2. Legacy heuristics, only when no document carries the key: id
       fields, "{provider}-{id}" file names, or a file named after the
       title. Used once to migrate documents created before sync keys.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from listsync.sync.naming import DOCUMENT_SUFFIX, sanitize_filename

if TYPE_CHECKING:
    from listsync.core.types import MediaRecord
    from listsync.store.base import DocumentStore

logger = logging.getLogger(__name__)

# Front matter fields older documents used to store the provider id
LEGACY_ID_FIELDS = ("malId", "id", "providerId", "external_id")


class LookupKind(str, Enum):
    """Outcome of a document lookup."""

    EXACT = "exact"
    DUPLICATES = "duplicates"
    LEGACY = "legacy"
    NONE = "none"


@dataclass(frozen=True)
class LookupResult:
    """Result of looking up the document(s) for one record.

    Attributes:
        kind: Classification
        paths: Candidate paths, sorted in selection order
    """

    kind: LookupKind
    paths: tuple[str, ...] = field(default_factory=tuple)

    @property
    def found(self) -> bool:
        return self.kind is not LookupKind.NONE

    @property
    def target(self) -> str | None:
        """The path that would be written, or None if nothing was found."""
        return self.paths[0] if self.paths else None


def _selection_key(path: str) -> tuple[int, str]:
    return (len(path), path)


def select_deterministic(paths: Iterable[str]) -> str:
    """Pick one path from a set of candidates.

    The shortest path wins, ties broken lexically. The choice depends only
    on the set, never on its order, so repeated runs against the same
    duplicates always pick the same document.

    Raises:
        ValueError: If paths is empty.
    """
    candidates = list(paths)
    if not candidates:
        raise ValueError("No candidate paths to select from")
    return min(candidates, key=_selection_key)


def _sorted(paths: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted(set(paths), key=_selection_key))


class DocumentMatcher:
    """Classifies the documents a record maps to."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def lookup(
        self,
        sync_identifier: str,
        record: MediaRecord,
        folder: str,
        sync_field: str,
    ) -> LookupResult:
        """Find the document(s) for a record.

        Args:
            sync_identifier: Identifier of the record
            record: Record being synced (for legacy heuristics)
            folder: Target folder the search is scoped to
            sync_field: Front matter key holding sync identifiers

        Returns:
            LookupResult with candidates sorted so that paths[0] is the
            deterministically selected one.
        """
        paths = self._store.query(folder, sync_field, sync_identifier)
        if len(paths) == 1:
            return LookupResult(LookupKind.EXACT, (paths[0],))
        if len(paths) > 1:
            logger.warning(
                "Found %d documents for %s: %s", len(paths), sync_identifier, ", ".join(sorted(paths))
            )
            return LookupResult(LookupKind.DUPLICATES, _sorted(paths))

        legacy = self.find_legacy(record, folder, sync_field)
        if legacy:
            logger.debug("Legacy candidates for %s: %s", sync_identifier, legacy)
            return LookupResult(LookupKind.LEGACY, _sorted(legacy))
        return LookupResult(LookupKind.NONE)

    def find_legacy(self, record: MediaRecord, folder: str, sync_field: str) -> list[str]:
        """Find documents in folder that match record but lack a sync key."""
        external_id = str(record.external_id)
        provider = re.escape(str(record.provider).lower())
        name_pattern = re.compile(
            rf"^{provider}-{re.escape(external_id)}(?:-.*)?{re.escape(DOCUMENT_SUFFIX)}$"
        )
        title_name = f"{sanitize_filename(record.title)}{DOCUMENT_SUFFIX}" if record.title else None

        candidates = []
        for path in self._store.list_documents(folder):
            if self._store.get_property(path, sync_field):
                continue
            name = path.rsplit("/", 1)[-1]

            if self._matches_id_field(path, external_id):
                logger.debug("Legacy candidate by id field: %s", path)
            elif name_pattern.match(name):
                logger.debug("Legacy candidate by file name pattern: %s", path)
            elif title_name is not None and name == title_name:
                logger.debug("Legacy candidate by title: %s", path)
            else:
                continue
            candidates.append(path)
        return candidates

    def _matches_id_field(self, path: str, external_id: str) -> bool:
        for field_name in LEGACY_ID_FIELDS:
            value = self._store.get_property(path, field_name)
            if value is None or isinstance(value, bool):
                continue
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            if str(value) == external_id:
                return True
        return False
