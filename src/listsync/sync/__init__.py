"""Sync engine: lookup, locking, batching and document writing.

This module provides:
- SyncService: save_one / save_many / iter_save_many
- DocumentMatcher, select_deterministic: Document lookup
- LockManager: Per-identifier locks
- DocumentWriter: Create and update documents
- RecordsWatcher: Re-sync when a records file changes
"""

from listsync.sync.batch import (
    BatchItem,
    SkipDecision,
    parse_instant,
    prepare_batch,
    prepare_item,
    should_skip,
    skip_result,
)
from listsync.sync.locks import LockEntry, LockManager
from listsync.sync.matcher import (
    DocumentMatcher,
    LookupKind,
    LookupResult,
    select_deterministic,
)
from listsync.sync.naming import document_path, sanitize_filename
from listsync.sync.service import BatchProgress, SyncService
from listsync.sync.watcher import RecordsFileHandler, RecordsWatcher
from listsync.sync.writer import MAX_CREATE_ATTEMPTS, DocumentWriter, file_stem

__all__ = [
    # Batch
    "BatchItem",
    "SkipDecision",
    "parse_instant",
    "prepare_batch",
    "prepare_item",
    "should_skip",
    "skip_result",
    # Locks
    "LockEntry",
    "LockManager",
    # Matching
    "DocumentMatcher",
    "LookupKind",
    "LookupResult",
    "select_deterministic",
    # Writing
    "MAX_CREATE_ATTEMPTS",
    "DocumentWriter",
    "document_path",
    "file_stem",
    "sanitize_filename",
    # Service
    "BatchProgress",
    "SyncService",
    # Watcher
    "RecordsFileHandler",
    "RecordsWatcher",
]
