"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from listsync.core.config import SyncSettings
from listsync.core.types import MediaRecord
from listsync.store.markdown import MarkdownStore
from tests.helpers import InMemoryStore, make_record


@pytest.fixture
def record() -> MediaRecord:
    """The "Attack on Titan" anime record."""
    return make_record()


@pytest.fixture
def full_record() -> MediaRecord:
    """An anime record with most descriptive fields set."""
    return MediaRecord.from_dict(
        {
            "provider": "mal",
            "category": "anime",
            "id": 16498,
            "title": "Shingeki no Kyojin",
            "updatedAt": "2024-01-01T00:00:00Z",
            "url": "https://myanimelist.net/anime/16498",
            "mainPicture": {"medium": "https://cdn/m.jpg", "large": "https://cdn/l.jpg"},
            "alternativeTitles": {
                "en": "Attack on Titan",
                "ja": "進撃の巨人",
                "synonyms": ["AoT", "SnK"],
            },
            "synopsis": "Humanity fights titans.",
            "mediaType": "tv",
            "status": "finished_airing",
            "mean": 8.54,
            "genres": [{"id": 1, "name": "Action"}, {"id": 8, "name": "Drama"}],
            "releasedStart": "2013-04-07",
            "releasedEnd": "2013-09-29",
            "source": "manga",
            "numEpisodes": 25,
            "numEpisodesWatched": 25,
            "studios": [{"id": 858, "name": "Wit Studio"}],
            "duration": 1440,
            "userStatus": "completed",
            "userScore": 9,
            "userStartDate": "2020-01-02",
            "userFinishDate": "2020-02-03T10:00:00Z",
        }
    )


@pytest.fixture
def settings() -> SyncSettings:
    """Default settings."""
    return SyncSettings()


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def vault(tmp_path: Path) -> Path:
    path = tmp_path / "vault"
    path.mkdir()
    return path


@pytest.fixture
def markdown_store(vault: Path) -> MarkdownStore:
    return MarkdownStore(vault)
