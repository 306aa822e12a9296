"""Document creation and front matter updates.

This module provides:
- DocumentWriter: Creates new documents and merges properties into
  existing ones

Updates only touch the keys being written; other properties and the body
are preserved. The body template is applied once, at creation, so user
edits to a document's body are never overwritten.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from listsync.core.types import DocumentCreateError, DocumentExistsError
from listsync.sync.naming import document_path, sanitize_filename
from listsync.template.frontmatter import build_frontmatter, render_body, render_document
from listsync.template.parser import resolve_template

if TYPE_CHECKING:
    from listsync.core.config import TemplateConfig
    from listsync.core.types import MediaRecord
    from listsync.store.base import Document, DocumentStore

logger = logging.getLogger(__name__)

MAX_CREATE_ATTEMPTS = 5


def file_stem(record: MediaRecord, template: TemplateConfig) -> str:
    """Resolve the file name pattern, falling back to the title."""
    name = resolve_template(template.file_name, record)
    if isinstance(name, list):
        name = " ".join(name)
    return sanitize_filename(name or record.title)


class DocumentWriter:
    """Writes documents for records."""

    def __init__(self, store: DocumentStore, create_folders: bool = True) -> None:
        self._store = store
        self._create_folders = create_folders

    def update(self, path: str, properties: dict[str, Any]) -> Document:
        """Merge properties into a document's front matter.

        Raises:
            DocumentNotFoundError: If the document disappeared.
        """
        return self._store.mutate_frontmatter(path, lambda frontmatter: frontmatter.update(properties))

    def create(
        self,
        record: MediaRecord,
        template: TemplateConfig,
        sync_identifier: str,
    ) -> Document:
        """Create the document for a record.

        On a name collision the next "-N" suffix is tried, up to
        MAX_CREATE_ATTEMPTS attempts.

        Raises:
            DocumentCreateError: If every attempted path was taken.
        """
        if self._create_folders:
            self._store.ensure_folder(template.folder_path)

        stem = file_stem(record, template)
        content = render_document(
            build_frontmatter(record, template, sync_identifier),
            render_body(record, template),
        )

        for attempt in range(MAX_CREATE_ATTEMPTS):
            path = document_path(template.folder_path, stem, attempt)
            try:
                document = self._store.create(path, content)
            except DocumentExistsError:
                logger.debug("Path %s exists (attempt %d/%d)", path, attempt + 1, MAX_CREATE_ATTEMPTS)
                continue
            if attempt:
                logger.info("Created %s under a suffixed name", path)
            return document

        raise DocumentCreateError(
            f"Could not create a document for {sync_identifier}: "
            f"{MAX_CREATE_ATTEMPTS} names under '{template.folder_path}' were taken"
        )
