"""Tests for batch preparation and skip decisions."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from listsync.core.config import SyncSettings
from listsync.core.types import ConfigError, InvalidIdentifierError, MediaRecord, SyncAction
from listsync.sync.batch import (
    REASON_DIFFER,
    REASON_FORCED,
    REASON_INVALID,
    REASON_MATCH,
    REASON_NO_LOCAL,
    REASON_NO_REMOTE,
    parse_instant,
    prepare_batch,
    should_skip,
    skip_result,
)
from listsync.sync.matcher import LookupKind
from tests.helpers import InMemoryStore, make_record

KEY = "mal:anime:1245"
PATH = "Media/Anime/Attack on Titan.md"


class TestParseInstant:
    """Tests for parse_instant()."""

    def test_zulu(self) -> None:
        assert parse_instant("2024-01-01T00:00:00Z") == datetime(2024, 1, 1, tzinfo=UTC)

    def test_naive_is_utc(self) -> None:
        assert parse_instant("2024-01-01T00:00:00") == datetime(2024, 1, 1, tzinfo=UTC)

    def test_offsets_compare_as_instants(self) -> None:
        assert parse_instant("2024-01-01T01:00:00+01:00") == parse_instant("2024-01-01T00:00:00Z")

    @pytest.mark.parametrize("value", ["yesterday", "", None, 1704067200, "2024-13-01"])
    def test_invalid(self, value) -> None:
        assert parse_instant(value) is None


class TestShouldSkip:
    """Tests for should_skip()."""

    @pytest.mark.parametrize(
        ("local", "remote", "force", "skip", "reason"),
        [
            ("2024-01-01T00:00:00Z", "2024-01-01T00:00:00Z", False, True, REASON_MATCH),
            ("2024-01-01T00:00:00.000Z", "2024-01-01T00:00:00Z", False, True, REASON_MATCH),
            ("2024-01-01T00:00:00Z", "2024-01-01T00:00:00Z", True, False, REASON_FORCED),
            (None, "2024-01-01T00:00:00Z", False, False, REASON_NO_LOCAL),
            ("", "2024-01-01T00:00:00Z", False, False, REASON_NO_LOCAL),
            ("2024-01-01T00:00:00Z", None, False, False, REASON_NO_REMOTE),
            ("garbage", "2024-01-01T00:00:00Z", False, False, REASON_INVALID),
            ("2024-01-01T00:00:00Z", "garbage", False, False, REASON_INVALID),
            ("2024-01-01T00:00:00Z", "2024-02-01T00:00:00Z", False, False, REASON_DIFFER),
        ],
    )
    def test_decision(self, local, remote, force: bool, skip: bool, reason: str) -> None:
        decision = should_skip(local, remote, force)
        assert decision.skip is skip
        assert decision.reason == reason


class TestPrepareBatch:
    """Tests for prepare_batch()."""

    def test_positions_and_identifiers(self, memory_store: InMemoryStore, settings: SyncSettings) -> None:
        records = [make_record(externalId=1), make_record(externalId=2, category="manga")]
        items = prepare_batch(records, settings, memory_store)

        assert [item.position for item in items] == [0, 1]
        assert [item.sync_identifier for item in items] == ["mal:anime:1", "mal:manga:2"]
        assert items[1].template.folder_path == "Media/Manga"

    def test_new_record_is_processed(self, memory_store: InMemoryStore, settings: SyncSettings) -> None:
        (item,) = prepare_batch([make_record()], settings, memory_store)
        assert item.lookup.kind is LookupKind.NONE
        assert item.local_timestamp is None
        assert not item.should_skip
        assert item.decision.reason == REASON_NO_LOCAL

    def test_unchanged_record_is_skipped(self, memory_store: InMemoryStore, settings: SyncSettings) -> None:
        memory_store.add(PATH, {"sync_key": KEY, "synced": "2024-01-01T00:00:00Z"})
        (item,) = prepare_batch([make_record()], settings, memory_store)
        assert item.lookup.kind is LookupKind.EXACT
        assert item.local_timestamp == "2024-01-01T00:00:00Z"
        assert item.should_skip

    def test_force_processes_everything(self, memory_store: InMemoryStore) -> None:
        memory_store.add(PATH, {"sync_key": KEY, "synced": "2024-01-01T00:00:00Z"})
        (item,) = prepare_batch([make_record()], SyncSettings(force_full_sync=True), memory_store)
        assert not item.should_skip
        assert item.decision.reason == REASON_FORCED

    def test_prepare_does_not_write(self, memory_store: InMemoryStore, settings: SyncSettings) -> None:
        memory_store.add(PATH, {"sync_key": KEY, "synced": "2023-01-01T00:00:00Z"})
        prepare_batch([make_record(), make_record(externalId=7)], settings, memory_store)
        assert memory_store.writes == []

    def test_legacy_timestamp_ignored(self, memory_store: InMemoryStore, settings: SyncSettings) -> None:
        """A legacy match is never skipped, so it gets linked."""
        memory_store.add("Media/Anime/mal-1245.md", {"synced": "2024-01-01T00:00:00Z"})
        (item,) = prepare_batch([make_record()], settings, memory_store)
        assert item.lookup.kind is LookupKind.LEGACY
        assert item.local_timestamp is None
        assert not item.should_skip
        assert item.decision.reason == REASON_NO_LOCAL

    def test_invalid_record_captured(self, memory_store: InMemoryStore, settings: SyncSettings) -> None:
        """A bad record fills its slot with the error; the others are prepared."""
        items = prepare_batch([make_record(externalId=None), make_record(externalId=7)], settings, memory_store)
        assert isinstance(items[0], InvalidIdentifierError)
        assert items[1].sync_identifier == "mal:anime:7"

    def test_unknown_category_captured(self, memory_store: InMemoryStore, settings: SyncSettings) -> None:
        (item,) = prepare_batch([make_record(category="novel")], settings, memory_store)
        assert isinstance(item, ConfigError)


class TestSkipResult:
    """Tests for skip_result()."""

    def test_skip_result(self, memory_store: InMemoryStore, settings: SyncSettings, record: MediaRecord) -> None:
        memory_store.add(PATH, {"sync_key": KEY, "synced": "2024-01-01T00:00:00Z"})
        (item,) = prepare_batch([record], settings, memory_store)
        result = skip_result(item)
        assert result.action is SyncAction.SKIPPED
        assert result.target_path == PATH
        assert result.sync_identifier == KEY
        assert result.duplicate_paths is None

    def test_skip_result_reports_duplicates(
        self, memory_store: InMemoryStore, settings: SyncSettings, record: MediaRecord
    ) -> None:
        memory_store.add("Media/Anime/AoT.md", {"sync_key": KEY, "synced": "2024-01-01T00:00:00Z"})
        memory_store.add(PATH, {"sync_key": KEY, "synced": "2020-01-01T00:00:00Z"})
        (item,) = prepare_batch([record], settings, memory_store)

        assert item.should_skip
        result = skip_result(item)
        assert result.duplicate_paths == ["Media/Anime/AoT.md", PATH]
