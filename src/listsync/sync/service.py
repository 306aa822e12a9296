"""Sync service: the public API for syncing records into documents.

This module provides:
- BatchProgress: One progress event of a batch
- SyncService: save_one / save_many / iter_save_many / find_duplicates

Every write runs under the lock for the record's sync identifier, so
concurrent save_one calls for the same record never interleave. Calls for
different records proceed in parallel.

Usage:
    service = SyncService(MarkdownStore(vault))
    for progress in service.iter_save_many(records, settings):
        print(progress.current, progress.total, progress.title)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from listsync.core.config import SYNC_KEY_TEMPLATE
from listsync.core.identifiers import sync_identifier_for
from listsync.core.types import SyncAction, SyncActionResult
from listsync.sync.batch import BatchItem, prepare_batch, prepare_item, skip_result
from listsync.sync.locks import LockManager
from listsync.sync.matcher import DocumentMatcher, LookupKind, select_deterministic
from listsync.sync.writer import DocumentWriter
from listsync.template.frontmatter import build_frontmatter

if TYPE_CHECKING:
    from listsync.core.config import SyncSettings
    from listsync.core.types import MediaRecord
    from listsync.store.base import DocumentStore

logger = logging.getLogger(__name__)


def _default_scheduler() -> None:
    time.sleep(0)


@dataclass(frozen=True)
class BatchProgress:
    """Progress of a batch after one item.

    Attributes:
        current: Number of items handled so far (1-based)
        total: Number of records in the batch
        title: Title of the record just handled
        result: Result of the item, None if it failed
        error: Exception raised by the item, None on success
    """

    current: int
    total: int
    title: str
    result: SyncActionResult | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SyncService:
    """Synchronizes records with documents in a store.

    Owns a LockManager (injectable for tests) and a scheduler hook called
    periodically during batches to give other work a chance to run.
    """

    def __init__(
        self,
        store: DocumentStore,
        lock_manager: LockManager | None = None,
        scheduler: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Document store to read and write
            lock_manager: Lock registry; a new one is created if omitted
            scheduler: Called every SyncSettings.yield_every written items
                (default: time.sleep(0))
        """
        self._store = store
        self._locks = lock_manager or LockManager()
        self._scheduler = scheduler or _default_scheduler
        self._matcher = DocumentMatcher(store)

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def lock_manager(self) -> LockManager:
        return self._locks

    def _writer(self, settings: SyncSettings) -> DocumentWriter:
        return DocumentWriter(self._store, create_folders=settings.create_folders)

    # -------------------------------------------------------------------------
    # Single item
    # -------------------------------------------------------------------------

    def save_one(self, record: MediaRecord, settings: SyncSettings) -> SyncActionResult:
        """Sync one record.

        Looks up the record's document, skips it when its synced timestamp
        matches the record's updated_at, and otherwise creates or updates
        it. Running it twice with an unchanged record yields "skipped".

        Raises:
            InvalidIdentifierError: If the record lacks provider/category/id.
            ConfigError: If no template exists for the record's category.
            LockTimeoutError: If the record's lock could not be acquired.
            DocumentCreateError: If no free file name was found.
        """
        sync_identifier = sync_identifier_for(record)
        with self._locks.locked(sync_identifier):
            item = prepare_item(0, record, settings, self._store, self._matcher)
            if item.should_skip:
                result = skip_result(item)
            else:
                result = self._apply(item, self._writer(settings))
        logger.debug("%s: %s", sync_identifier, result.action.value)
        return result

    def _apply(self, item: BatchItem, writer: DocumentWriter) -> SyncActionResult:
        """Write one prepared item. Caller holds the item's lock."""
        lookup = item.lookup
        if lookup.kind is LookupKind.NONE:
            # Another writer may have created it since the item was prepared
            lookup = self._matcher.lookup(
                item.sync_identifier,
                item.record,
                item.template.folder_path,
                item.template.sync_key_field,
            )

        if lookup.kind is LookupKind.NONE:
            document = writer.create(item.record, item.template, item.sync_identifier)
            return SyncActionResult(
                action=SyncAction.CREATED,
                target_path=document.path,
                sync_identifier=item.sync_identifier,
                message=f"Created {document.path}",
            )

        target = select_deterministic(lookup.paths)
        properties = build_frontmatter(item.record, item.template, item.sync_identifier)
        writer.update(target, properties)

        if lookup.kind is LookupKind.EXACT:
            return SyncActionResult(
                action=SyncAction.UPDATED,
                target_path=target,
                sync_identifier=item.sync_identifier,
                message=f"Updated {target}",
            )
        if lookup.kind is LookupKind.LEGACY:
            logger.info("Linked legacy document %s to %s", target, item.sync_identifier)
            return SyncActionResult(
                action=SyncAction.LINKED_LEGACY,
                target_path=target,
                sync_identifier=item.sync_identifier,
                message=f"Linked legacy document {target}",
            )

        logger.warning(
            "Duplicates for %s: updated %s, left %d other(s) untouched",
            item.sync_identifier,
            target,
            len(lookup.paths) - 1,
        )
        return SyncActionResult(
            action=SyncAction.DUPLICATES_DETECTED,
            target_path=target,
            sync_identifier=item.sync_identifier,
            duplicate_paths=list(lookup.paths),
            message=f"Found {len(lookup.paths)} documents for {item.sync_identifier}; updated {target}",
        )

    # -------------------------------------------------------------------------
    # Batches
    # -------------------------------------------------------------------------

    def iter_save_many(
        self,
        records: Iterable[MediaRecord],
        settings: SyncSettings,
        cancel_check: Callable[[], bool] | None = None,
    ) -> Iterator[BatchProgress]:
        """Sync many records, yielding progress after each one.

        Records are first prepared together (identifier, lookup, skip
        decision), then handled one at a time in input order. A failing
        record is logged and reported through its BatchProgress; the
        batch continues.

        Args:
            records: Records to sync
            settings: Settings snapshot for the whole batch
            cancel_check: Checked between items; returning True stops the
                batch before the next item

        Yields:
            BatchProgress for each handled record, in input order.
        """
        records = list(records)
        total = len(records)
        start = time.monotonic()

        prepared = prepare_batch(records, settings, self._store, self._matcher)

        # Execute phase
        writer = self._writer(settings)
        written = 0
        counts: dict[str, int] = {}
        for current, (record, item) in enumerate(zip(records, prepared, strict=True), start=1):
            if cancel_check is not None and cancel_check():
                logger.info("Batch cancelled after %d of %d records", current - 1, total)
                return

            if isinstance(item, Exception):
                counts["failed"] = counts.get("failed", 0) + 1
                yield BatchProgress(current, total, record.title, error=item)
                continue

            if item.should_skip:
                result = skip_result(item)
            else:
                try:
                    with self._locks.locked(item.sync_identifier):
                        result = self._apply(item, writer)
                except Exception as e:
                    logger.exception("Failed to sync '%s' (%s)", record.title, item.sync_identifier)
                    counts["failed"] = counts.get("failed", 0) + 1
                    yield BatchProgress(current, total, record.title, error=e)
                    continue
                finally:
                    written += 1
                    if written % settings.yield_every == 0:
                        self._scheduler()

            counts[result.action.value] = counts.get(result.action.value, 0) + 1
            yield BatchProgress(current, total, record.title, result=result)

        logger.info(
            "Sync complete in %.2fs: %s",
            time.monotonic() - start,
            ", ".join(f"{count} {name}" for name, count in sorted(counts.items())) or "nothing to do",
        )

    def save_many(
        self,
        records: Iterable[MediaRecord],
        settings: SyncSettings,
        on_progress: Callable[[BatchProgress], None] | None = None,
        cancel_check: Callable[[], bool] | None = None,
    ) -> list[SyncActionResult]:
        """Sync many records.

        Returns:
            Results in input order. Records that failed are left out.
        """
        results = []
        for progress in self.iter_save_many(records, settings, cancel_check=cancel_check):
            if on_progress is not None:
                on_progress(progress)
            if progress.result is not None:
                results.append(progress.result)
        return results

    # -------------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------------

    def find_duplicates(self, folder: str, sync_field: str = SYNC_KEY_TEMPLATE) -> dict[str, list[str]]:
        """Find sync identifiers carried by more than one document.

        Args:
            folder: Folder to scan (recursively)
            sync_field: Front matter key holding sync identifiers

        Returns:
            Identifier -> paths (in selection order, selected first).
        """
        by_identifier: dict[str, list[str]] = {}
        for path in self._store.list_documents(folder):
            value = self._store.get_property(path, sync_field)
            if isinstance(value, str) and value:
                by_identifier.setdefault(value, []).append(path)

        return {
            identifier: sorted(paths, key=lambda p: (len(p), p))
            for identifier, paths in sorted(by_identifier.items())
            if len(paths) > 1
        }
