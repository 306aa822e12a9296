"""Tests for sync identifier derivation."""

from __future__ import annotations

import itertools

import pytest

from listsync.core.identifiers import (
    derive_sync_identifier,
    is_valid_sync_identifier,
    parse_sync_identifier,
    sync_identifier_for,
)
from listsync.core.types import InvalidIdentifierError, MediaCategory
from tests.helpers import make_record


class TestDeriveSyncIdentifier:
    """Tests for derive_sync_identifier()."""

    def test_basic(self) -> None:
        assert derive_sync_identifier("mal", "anime", 1245) == "mal:anime:1245"

    def test_lowercases_provider_and_category(self) -> None:
        assert derive_sync_identifier("MAL", "Manga", "42") == "mal:manga:42"

    def test_accepts_enum_category(self) -> None:
        assert derive_sync_identifier("mal", MediaCategory.ANIME, 1) == "mal:anime:1"

    def test_string_and_int_ids_agree(self) -> None:
        assert derive_sync_identifier("mal", "anime", 7) == derive_sync_identifier("mal", "anime", "7")

    def test_deterministic(self) -> None:
        """Same triple always yields the same identifier."""
        results = {derive_sync_identifier("simkl", "anime", "abc-1") for _ in range(10)}
        assert results == {"simkl:anime:abc-1"}

    def test_distinct_triples_never_collide(self) -> None:
        providers = ["mal", "simkl"]
        categories = ["anime", "manga"]
        ids = [1, 12, 123, "a_b"]
        triples = list(itertools.product(providers, categories, ids))
        identifiers = {derive_sync_identifier(*t) for t in triples}
        assert len(identifiers) == len(triples)

    @pytest.mark.parametrize(
        ("provider", "category", "external_id"),
        [
            ("", "anime", 1),
            (None, "anime", 1),
            ("mal", "", 1),
            ("mal", None, 1),
            ("mal", "anime", None),
            ("mal", "anime", ""),
        ],
    )
    def test_missing_parts_fail_fast(self, provider, category, external_id) -> None:
        with pytest.raises(InvalidIdentifierError):
            derive_sync_identifier(provider, category, external_id)

    @pytest.mark.parametrize("external_id", ["a b", "1:2", "x/y", "tab\t", "1245\n", "\t1245"])
    def test_rejects_ambiguous_ids(self, external_id: str) -> None:
        with pytest.raises(InvalidIdentifierError):
            derive_sync_identifier("mal", "anime", external_id)

    def test_rejects_bool_id(self) -> None:
        with pytest.raises(InvalidIdentifierError):
            derive_sync_identifier("mal", "anime", True)

    def test_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            derive_sync_identifier("mal", "anime", None)


class TestSyncIdentifierFor:
    """Tests for sync_identifier_for()."""

    def test_scenario_record(self) -> None:
        assert sync_identifier_for(make_record()) == "mal:anime:1245"

    def test_uses_platform_alias(self) -> None:
        record = make_record(provider=None, platform="SIMKL")
        assert sync_identifier_for(record) == "simkl:anime:1245"


class TestValidation:
    """Tests for is_valid_sync_identifier() and parse_sync_identifier()."""

    @pytest.mark.parametrize("value", ["mal:anime:1245", "simkl:manga:abc_1-2"])
    def test_valid(self, value: str) -> None:
        assert is_valid_sync_identifier(value)

    @pytest.mark.parametrize(
        "value",
        ["", "mal:anime", "MAL:anime:1", "mal:anime:1:2", "mal:anime:1245\n", "mal:anime:12\t45", None, 42],
    )
    def test_invalid(self, value) -> None:
        assert not is_valid_sync_identifier(value)

    def test_parse(self) -> None:
        assert parse_sync_identifier("mal:anime:1245") == ("mal", "anime", "1245")

    def test_parse_invalid(self) -> None:
        with pytest.raises(InvalidIdentifierError):
            parse_sync_identifier("not-an-identifier")

    def test_parse_rejects_trailing_newline(self) -> None:
        """A trailing newline must not yield a second key for the same item."""
        with pytest.raises(InvalidIdentifierError):
            parse_sync_identifier("mal:anime:1245\n")
