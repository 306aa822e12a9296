"""Batch preparation: identifiers, lookups and skip decisions.

A batch is processed in two phases:
    1. Prepare: derive each record's identifier, look up its document once
       and read the cached synced timestamp from the property index. Skip
       decisions are then made in memory.
    2. Execute (SyncService.iter_save_many): skipped items become results
       without further I/O; the rest are written one at a time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from listsync.core.identifiers import sync_identifier_for
from listsync.core.types import SyncAction, SyncActionResult
from listsync.sync.matcher import DocumentMatcher, LookupKind, LookupResult

if TYPE_CHECKING:
    from listsync.core.config import SyncSettings, TemplateConfig
    from listsync.core.types import MediaRecord
    from listsync.store.base import DocumentStore

logger = logging.getLogger(__name__)

REASON_FORCED = "force sync enabled"
REASON_NO_LOCAL = "no local timestamp"
REASON_NO_REMOTE = "no remote timestamp"
REASON_INVALID = "invalid timestamp format"
REASON_MATCH = "timestamps match"
REASON_DIFFER = "timestamps differ"


@dataclass(frozen=True)
class SkipDecision:
    """Whether to skip a record, and why."""

    skip: bool
    reason: str


@dataclass
class BatchItem:
    """A record prepared for the execute phase.

    Attributes:
        position: Index of the record in the input
        record: The record
        sync_identifier: Derived identifier
        template: Template for the record's category
        lookup: Document lookup result
        local_timestamp: Synced value of the target document, if any
        decision: Precomputed skip decision
    """

    position: int
    record: MediaRecord
    sync_identifier: str
    template: TemplateConfig
    lookup: LookupResult
    local_timestamp: Any
    decision: SkipDecision

    @property
    def should_skip(self) -> bool:
        return self.decision.skip


def parse_instant(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Naive values are taken as UTC.

    Returns:
        The instant, or None if value is not a valid timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def should_skip(local: Any, remote: Any, force: bool = False) -> SkipDecision:
    """Decide whether a record can be skipped.

    Skips only when not forced and both timestamps are present, valid, and
    denote the same instant.

    Args:
        local: Synced timestamp stored in the document
        remote: updated_at of the record
        force: Force processing of every record
    """
    if force:
        return SkipDecision(False, REASON_FORCED)
    if local is None or local == "":
        return SkipDecision(False, REASON_NO_LOCAL)
    if remote is None or remote == "":
        return SkipDecision(False, REASON_NO_REMOTE)

    local_instant = parse_instant(local)
    remote_instant = parse_instant(remote)
    if local_instant is None or remote_instant is None:
        return SkipDecision(False, REASON_INVALID)
    if local_instant == remote_instant:
        return SkipDecision(True, REASON_MATCH)
    return SkipDecision(False, REASON_DIFFER)


def prepare_item(
    position: int,
    record: MediaRecord,
    settings: SyncSettings,
    store: DocumentStore,
    matcher: DocumentMatcher,
) -> BatchItem:
    """Prepare one record.

    Raises:
        InvalidIdentifierError: If the record lacks provider/category/id.
        ConfigError: If no template exists for the record's category.
    """
    sync_identifier = sync_identifier_for(record)
    template = settings.template_for(record.category)
    lookup = matcher.lookup(sync_identifier, record, template.folder_path, template.sync_key_field)

    # Only documents found by sync key provide the cached timestamp
    local_timestamp = None
    if lookup.kind in (LookupKind.EXACT, LookupKind.DUPLICATES):
        local_timestamp = store.get_property(lookup.target, template.synced_field)

    decision = should_skip(local_timestamp, record.updated_at, settings.force_full_sync)
    return BatchItem(
        position=position,
        record=record,
        sync_identifier=sync_identifier,
        template=template,
        lookup=lookup,
        local_timestamp=local_timestamp,
        decision=decision,
    )


def prepare_batch(
    records: list[MediaRecord],
    settings: SyncSettings,
    store: DocumentStore,
    matcher: DocumentMatcher | None = None,
) -> list[BatchItem | Exception]:
    """Prepare every record of a batch.

    A record that cannot be prepared does not stop the batch: its slot
    holds the exception instead of a BatchItem.

    Returns:
        One entry per record, in input order.
    """
    matcher = matcher or DocumentMatcher(store)
    items: list[BatchItem | Exception] = []
    for position, record in enumerate(records):
        try:
            items.append(prepare_item(position, record, settings, store, matcher))
        except Exception as e:
            logger.error("Failed to prepare '%s': %s", record.title, e)
            items.append(e)

    skipped = sum(1 for item in items if isinstance(item, BatchItem) and item.should_skip)
    failed = sum(1 for item in items if isinstance(item, Exception))
    logger.info("Prepared %d records: %d unchanged, %d failed", len(items), skipped, failed)
    return items


def skip_result(item: BatchItem) -> SyncActionResult:
    """Result for a skipped item. Performs no I/O.

    Duplicates found during preparation are still reported.
    """
    duplicates = list(item.lookup.paths) if item.lookup.kind is LookupKind.DUPLICATES else None
    message = f"Skipped - {item.decision.reason}"
    if duplicates:
        message += f" ({len(duplicates)} documents share this identifier)"
    return SyncActionResult(
        action=SyncAction.SKIPPED,
        target_path=item.lookup.target or "",
        sync_identifier=item.sync_identifier,
        duplicate_paths=duplicates,
        message=message,
    )
