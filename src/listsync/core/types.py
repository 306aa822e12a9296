"""Shared types for listsync.

This module provides:
- ListSyncError and subclasses: Exception classes
- MediaCategory: Known record categories
- MediaRecord and its nested value types (Picture, Genre, ...)
- SyncAction, SyncActionResult: Outcome of syncing one record
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ListSyncError(Exception):
    """Base exception for listsync errors."""


class InvalidIdentifierError(ListSyncError, ValueError):
    """A sync identifier could not be derived or parsed."""


class ConfigError(ListSyncError):
    """Settings or template configuration is invalid."""


class StoreError(ListSyncError):
    """Document store operation failed."""


class DocumentExistsError(StoreError):
    """A document already exists at the target path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Document already exists: {path}")


class DocumentNotFoundError(StoreError):
    """No document exists at the given path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Document not found: {path}")


class FrontmatterError(StoreError):
    """Front matter block could not be parsed."""


class DocumentCreateError(ListSyncError):
    """A new document could not be created within the attempt limit."""


class LockTimeoutError(ListSyncError):
    """Timed out waiting for a sync identifier lock.

    Attributes:
        key: Sync identifier that could not be locked
        waited: Seconds spent waiting
    """

    def __init__(self, key: str, waited: float) -> None:
        self.key = key
        self.waited = waited
        super().__init__(
            f"Lock acquisition timeout for {key} after waiting {waited:.1f}s"
        )


class MediaCategory(str, Enum):
    """Category of a tracked media record."""

    ANIME = "anime"
    MANGA = "manga"


@dataclass(frozen=True)
class Picture:
    """Cover picture URLs."""

    medium: str | None = None
    large: str | None = None


@dataclass(frozen=True)
class AlternativeTitles:
    """Alternative titles of a record."""

    en: str | None = None
    ja: str | None = None
    synonyms: tuple[str, ...] = ()


@dataclass(frozen=True)
class Genre:
    """Genre reference."""

    id: int | None
    name: str


@dataclass(frozen=True)
class Author:
    """Manga author reference."""

    first_name: str = ""
    last_name: str = ""
    role: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class MediaRecord:
    """A canonical list entry fetched from the tracking service.

    Records are immutable; one record per item per sync pass.

    Attributes:
        provider: Lowercase provider tag (e.g., "mal")
        category: "anime", "manga" or another lowercase category
        external_id: Provider-side id of the item
        title: Display title
        updated_at: ISO-8601 timestamp of the last change on the service
    """

    provider: str
    category: str
    external_id: str | int
    title: str
    updated_at: str | None = None

    url: str | None = None
    main_picture: Picture | None = None
    alternative_titles: AlternativeTitles | None = None
    synopsis: str | None = None
    media_type: str | None = None
    status: str | None = None
    mean: float | None = None
    genres: tuple[Genre, ...] = ()
    released_start: str | None = None
    released_end: str | None = None
    source: str | None = None

    # Anime
    num_episodes: int | None = None
    num_episodes_watched: int | None = None
    studios: tuple[str, ...] = ()
    episode_duration: int | None = None  # seconds

    # Manga
    num_volumes: int | None = None
    num_volumes_read: int | None = None
    num_chapters: int | None = None
    num_chapters_read: int | None = None
    authors: tuple[Author, ...] = ()

    # User list data
    user_status: str | None = None
    user_score: float | None = None
    user_start_date: str | None = None
    user_finish_date: str | None = None

    extra: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MediaRecord:
        """Build a record from a normalized JSON object.

        Accepts camelCase and snake_case keys. ``id`` and ``platform`` are
        accepted as aliases of ``external_id`` and ``provider``.

        Args:
            data: Record mapping

        Returns:
            A new MediaRecord
        """
        def get(*names: str) -> Any:
            for name in names:
                if name in data and data[name] is not None:
                    return data[name]
            return None

        category = get("category")
        if isinstance(category, str):
            category = category.lower()

        provider = get("provider", "platform")
        if isinstance(provider, str):
            provider = provider.lower()

        picture = get("mainPicture", "main_picture")
        alt = get("alternativeTitles", "alternative_titles")

        known = {
            "provider", "platform", "category", "externalId", "external_id",
            "id", "title", "updatedAt", "updated_at", "url", "mainPicture",
            "main_picture", "alternativeTitles", "alternative_titles",
            "synopsis", "mediaType", "media_type", "status", "mean", "genres",
            "releasedStart", "released_start", "releasedEnd", "released_end",
            "source", "numEpisodes", "num_episodes", "numEpisodesWatched",
            "num_episodes_watched", "studios", "duration", "episodeDuration",
            "episode_duration", "numVolumes", "num_volumes", "numVolumesRead",
            "num_volumes_read", "numChapters", "num_chapters",
            "numChaptersRead", "num_chapters_read", "authors", "userStatus",
            "user_status", "userScore", "user_score", "userStartDate",
            "user_start_date", "userFinishDate", "user_finish_date",
        }

        return cls(
            provider=provider,
            category=category,
            external_id=get("externalId", "external_id", "id"),
            title=get("title") or "",
            updated_at=get("updatedAt", "updated_at"),
            url=get("url"),
            main_picture=_parse_picture(picture),
            alternative_titles=_parse_alternative_titles(alt),
            synopsis=get("synopsis"),
            media_type=get("mediaType", "media_type"),
            status=get("status"),
            mean=get("mean"),
            genres=_parse_genres(get("genres")),
            released_start=get("releasedStart", "released_start"),
            released_end=get("releasedEnd", "released_end"),
            source=get("source"),
            num_episodes=get("numEpisodes", "num_episodes"),
            num_episodes_watched=get("numEpisodesWatched", "num_episodes_watched"),
            studios=_parse_names(get("studios")),
            episode_duration=get("episodeDuration", "episode_duration", "duration"),
            num_volumes=get("numVolumes", "num_volumes"),
            num_volumes_read=get("numVolumesRead", "num_volumes_read"),
            num_chapters=get("numChapters", "num_chapters"),
            num_chapters_read=get("numChaptersRead", "num_chapters_read"),
            authors=_parse_authors(get("authors")),
            user_status=get("userStatus", "user_status"),
            user_score=get("userScore", "user_score"),
            user_start_date=get("userStartDate", "user_start_date"),
            user_finish_date=get("userFinishDate", "user_finish_date"),
            extra={k: v for k, v in data.items() if k not in known},
        )


def _parse_picture(value: Any) -> Picture | None:
    if isinstance(value, Picture):
        return value
    if isinstance(value, Mapping):
        return Picture(medium=value.get("medium"), large=value.get("large"))
    if isinstance(value, str):
        return Picture(large=value)
    return None


def _parse_alternative_titles(value: Any) -> AlternativeTitles | None:
    if isinstance(value, AlternativeTitles):
        return value
    if not isinstance(value, Mapping):
        return None
    synonyms = value.get("synonyms") or ()
    return AlternativeTitles(
        en=value.get("en") or None,
        ja=value.get("ja") or None,
        synonyms=tuple(s for s in synonyms if s),
    )


def _parse_genres(value: Any) -> tuple[Genre, ...]:
    if not value:
        return ()
    genres = []
    for item in value:
        if isinstance(item, Genre):
            genres.append(item)
        elif isinstance(item, Mapping) and item.get("name"):
            genres.append(Genre(id=item.get("id"), name=item["name"]))
        elif isinstance(item, str) and item:
            genres.append(Genre(id=None, name=item))
    return tuple(genres)


def _parse_names(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    names = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("name")
        if item:
            names.append(str(item))
    return tuple(names)


def _parse_authors(value: Any) -> tuple[Author, ...]:
    if not value:
        return ()
    authors = []
    for item in value:
        if isinstance(item, Author):
            authors.append(item)
            continue
        if not isinstance(item, Mapping):
            continue
        # Raw service payloads nest the person under "node"
        node = item.get("node") if isinstance(item.get("node"), Mapping) else item
        author = Author(
            first_name=node.get("firstName") or node.get("first_name") or "",
            last_name=node.get("lastName") or node.get("last_name") or "",
            role=item.get("role"),
        )
        if author.full_name:
            authors.append(author)
    return tuple(authors)


class SyncAction(str, Enum):
    """What happened to a record during sync."""

    CREATED = "created"
    UPDATED = "updated"
    LINKED_LEGACY = "linked-legacy"
    DUPLICATES_DETECTED = "duplicates-detected"
    SKIPPED = "skipped"


@dataclass
class SyncActionResult:
    """Result of syncing one record.

    Attributes:
        action: What was done
        target_path: Document that was created, updated or skipped
        sync_identifier: Identifier of the record
        duplicate_paths: All candidate paths when more than one was found
        message: Human-readable summary
    """

    action: SyncAction
    target_path: str
    sync_identifier: str
    duplicate_paths: list[str] | None = None
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "action": self.action.value,
            "targetPath": self.target_path,
            "syncIdentifier": self.sync_identifier,
            "message": self.message,
        }
        if self.duplicate_paths is not None:
            data["duplicatePaths"] = list(self.duplicate_paths)
        return data
