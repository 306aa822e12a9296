"""Template and sync configuration.

This module defines the configuration classes read by the sync engine:
- PropertyType, PropertyItem: One front matter property and its template
- TemplateConfig: Folder, file name pattern, properties and body template
- SyncSettings: Per-category templates plus sync behaviour flags

Configuration is plain data; the engine treats it as a read-only snapshot
per sync call.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from listsync.core.types import ConfigError

SYNC_KEY_TEMPLATE = "sync_key"
SYNCED_TEMPLATE = "synced"
PERMANENT_TEMPLATES = (SYNC_KEY_TEMPLATE, SYNCED_TEMPLATE)

DEFAULT_FILE_NAME = "{{title}}"
DEFAULT_NOTE_CONTENT = "# {{title}}\n\n{{synopsis|callout:( summary, Synopsis, true)}}"


class PropertyType(str, Enum):
    """Front matter property types."""

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime"
    CHECKBOX = "checkbox"
    MULTITEXT = "multitext"


@dataclass
class PropertyItem:
    """A single front matter property.

    Attributes:
        id: Stable item id
        template: Template string with {{variables}}, or one of the
            permanent templates "sync_key" / "synced"
        custom_name: Front matter key written to the document
        order: Sort order
        type: Declared type used to coerce the resolved value
    """

    id: str
    template: str
    custom_name: str
    order: int
    type: PropertyType | None = None

    @property
    def is_permanent(self) -> bool:
        return self.template in PERMANENT_TEMPLATES

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PropertyItem:
        try:
            raw_type = data.get("type")
            return cls(
                id=str(data["id"]),
                template=str(data["template"]),
                custom_name=str(data.get("customName", data.get("custom_name"))),
                order=int(data.get("order", 0)),
                type=PropertyType(raw_type) if raw_type else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid property item {dict(data)!r}: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "template": self.template,
            "customName": self.custom_name,
            "order": self.order,
        }
        if self.type is not None:
            data["type"] = self.type.value
        return data


def _permanent_items(next_order: int) -> list[PropertyItem]:
    return [
        PropertyItem(
            id="prop-permanent-1",
            template=SYNC_KEY_TEMPLATE,
            custom_name=SYNC_KEY_TEMPLATE,
            order=next_order,
            type=PropertyType.TEXT,
        ),
        PropertyItem(
            id="prop-permanent-2",
            template=SYNCED_TEMPLATE,
            custom_name=SYNCED_TEMPLATE,
            order=next_order + 1,
            type=PropertyType.DATETIME,
        ),
    ]


@dataclass
class TemplateConfig:
    """User template for one category of records.

    The sync key and synced-timestamp properties are always present; they
    are appended on construction when missing.
    """

    folder_path: str
    properties: list[PropertyItem] = field(default_factory=list)
    file_name: str = DEFAULT_FILE_NAME
    note_content: str = ""

    def __post_init__(self) -> None:
        self.folder_path = self.folder_path.strip().strip("/")
        self.properties = list(self.properties)
        present = {item.template for item in self.properties}
        next_order = max((item.order for item in self.properties), default=0) + 1
        for item in _permanent_items(next_order):
            if item.template not in present:
                self.properties.append(item)
                next_order += 1

    @property
    def ordered_properties(self) -> list[PropertyItem]:
        return sorted(self.properties, key=lambda item: item.order)

    def _permanent_name(self, template: str) -> str:
        for item in self.properties:
            if item.template == template:
                return item.custom_name
        return template

    @property
    def sync_key_field(self) -> str:
        """Front matter key holding the sync identifier."""
        return self._permanent_name(SYNC_KEY_TEMPLATE)

    @property
    def synced_field(self) -> str:
        """Front matter key holding the last-synced timestamp."""
        return self._permanent_name(SYNCED_TEMPLATE)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TemplateConfig:
        folder = data.get("folderPath", data.get("folder_path"))
        if not isinstance(folder, str):
            raise ConfigError("Template is missing 'folderPath'")
        return cls(
            folder_path=folder,
            properties=[PropertyItem.from_dict(p) for p in data.get("properties", [])],
            file_name=data.get("fileName", data.get("file_name")) or DEFAULT_FILE_NAME,
            note_content=data.get("noteContent", data.get("note_content")) or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "folderPath": self.folder_path,
            "fileName": self.file_name,
            "noteContent": self.note_content,
            "properties": [item.to_dict() for item in self.ordered_properties],
        }


def _items(*specs: tuple[str, str, str, PropertyType]) -> list[PropertyItem]:
    return [
        PropertyItem(id=item_id, template=template, custom_name=name, order=i, type=ptype)
        for i, (item_id, template, name, ptype) in enumerate(specs, start=1)
    ]


def default_anime_template() -> TemplateConfig:
    """Default template for anime records."""
    return TemplateConfig(
        folder_path="Media/Anime",
        note_content=DEFAULT_NOTE_CONTENT,
        properties=_items(
            ("prop-1", "{{title}}", "title", PropertyType.TEXT),
            ("prop-2", "{{alternativeTitles}}", "aliases", PropertyType.MULTITEXT),
            ("prop-20", "{{userStatus}}", "status", PropertyType.TEXT),
            ("prop-17", "{{numEpisodesWatched}}", "eps_seen", PropertyType.NUMBER),
            ("prop-21", "{{userScore}}", "rating", PropertyType.NUMBER),
            ("prop-22", '{{userStartDate|date:"YYYY-MM-DD"}}', "started", PropertyType.DATE),
            ("prop-23", '{{userFinishDate|date:"YYYY-MM-DD"}}', "finished", PropertyType.DATE),
            ("prop-9", "{{mediaType}}", "media", PropertyType.TEXT),
            ("prop-16", "{{numEpisodes}}", "episodes", PropertyType.NUMBER),
            ("prop-10", "{{status}}", "state", PropertyType.TEXT),
            ("prop-14", '{{releasedStart|date:"YYYY-MM-DD"}}', "released", PropertyType.DATE),
            ("prop-15", '{{releasedEnd|date:"YYYY-MM-DD"}}', "ended", PropertyType.DATE),
            ("prop-18", "{{studios|wikilink}}", "studios", PropertyType.MULTITEXT),
            ("prop-13", "{{source}}", "origin", PropertyType.TEXT),
            ("prop-12", "{{genres|wikilink}}", "genres", PropertyType.MULTITEXT),
            ("prop-19", "{{duration|duration:H:mm:ss}}", "duration", PropertyType.TEXT),
            ("prop-11", "{{mean}}", "score", PropertyType.NUMBER),
            ("prop-7", "{{mainPicture}}", "image", PropertyType.TEXT),
            ("prop-6", "{{url}}", "source", PropertyType.TEXT),
            ("prop-5", "{{platform}}", "platform", PropertyType.TEXT),
            ("prop-4", "{{category}}", "category", PropertyType.TEXT),
            ("prop-3", "{{id}}", "id", PropertyType.NUMBER),
        ),
    )


def default_manga_template() -> TemplateConfig:
    """Default template for manga records."""
    return TemplateConfig(
        folder_path="Media/Manga",
        note_content=DEFAULT_NOTE_CONTENT,
        properties=_items(
            ("prop-1", "{{title}}", "title", PropertyType.TEXT),
            ("prop-2", "{{alternativeTitles}}", "aliases", PropertyType.MULTITEXT),
            ("prop-21", "{{userStatus}}", "status", PropertyType.TEXT),
            ("prop-19", "{{numChaptersRead}}", "chap_read", PropertyType.NUMBER),
            ("prop-17", "{{numVolumesRead}}", "vol_read", PropertyType.NUMBER),
            ("prop-22", "{{userScore}}", "rating", PropertyType.NUMBER),
            ("prop-23", '{{userStartDate|date:"YYYY-MM-DD"}}', "started", PropertyType.DATE),
            ("prop-24", '{{userFinishDate|date:"YYYY-MM-DD"}}', "finished", PropertyType.DATE),
            ("prop-9", "{{mediaType}}", "media", PropertyType.TEXT),
            ("prop-18", "{{numChapters}}", "chapters", PropertyType.NUMBER),
            ("prop-16", "{{numVolumes}}", "volumes", PropertyType.NUMBER),
            ("prop-10", "{{status}}", "state", PropertyType.TEXT),
            ("prop-14", '{{releasedStart|date:"YYYY-MM-DD"}}', "released", PropertyType.DATE),
            ("prop-15", '{{releasedEnd|date:"YYYY-MM-DD"}}', "ended", PropertyType.DATE),
            ("prop-13", "{{source}}", "origin", PropertyType.TEXT),
            ("prop-12", "{{genres|wikilink}}", "genres", PropertyType.MULTITEXT),
            ("prop-20", "{{authors}}", "authors", PropertyType.TEXT),
            ("prop-11", "{{mean}}", "score", PropertyType.NUMBER),
            ("prop-7", "{{mainPicture}}", "image", PropertyType.TEXT),
            ("prop-6", "{{url}}", "source", PropertyType.TEXT),
            ("prop-5", "{{platform}}", "platform", PropertyType.TEXT),
            ("prop-4", "{{category}}", "category", PropertyType.TEXT),
            ("prop-3", "{{id}}", "id", PropertyType.NUMBER),
        ),
    )


@dataclass
class SyncSettings:
    """Settings snapshot for one sync call.

    Attributes:
        templates: Category name -> template
        force_full_sync: Process every record even when timestamps match
        create_folders: Create missing target folders before writing
        yield_every: Call the scheduler hook after this many processed items
    """

    templates: dict[str, TemplateConfig] = field(default_factory=dict)
    force_full_sync: bool = False
    create_folders: bool = True
    yield_every: int = 10

    def __post_init__(self) -> None:
        self.templates = dict(self.templates)
        self.templates.setdefault("anime", default_anime_template())
        self.templates.setdefault("manga", default_manga_template())
        if self.yield_every < 1:
            raise ConfigError("yield_every must be at least 1")

    def template_for(self, category: str) -> TemplateConfig:
        """Get the template for a record category.

        Raises:
            ConfigError: If no template is configured for the category.
        """
        key = str(getattr(category, "value", category)).lower()
        try:
            return self.templates[key]
        except KeyError:
            raise ConfigError(f"No template configured for category '{key}'") from None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SyncSettings:
        templates = {
            str(name).lower(): TemplateConfig.from_dict(template)
            for name, template in (data.get("templates") or {}).items()
        }
        for name, key in (("anime", "animeTemplate"), ("manga", "mangaTemplate")):
            if key in data:
                templates[name] = TemplateConfig.from_dict(data[key])
        return cls(
            templates=templates,
            force_full_sync=bool(data.get("forceFullSync", False)),
            create_folders=bool(data.get("createFolders", True)),
            yield_every=int(data.get("yieldEvery", 10)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "forceFullSync": self.force_full_sync,
            "createFolders": self.create_folders,
            "yieldEvery": self.yield_every,
            "templates": {name: t.to_dict() for name, t in self.templates.items()},
        }
