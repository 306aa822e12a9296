"""Template variables.

Each variable usable in a template is a member of Variable, and VARIABLES
maps it to an accessor over MediaRecord. Names that are not members resolve
to no value.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from listsync.core.types import AlternativeTitles, MediaRecord

# A resolved variable: scalar, list of strings, or nothing
VariableValue = str | int | float | list[str] | None


class Variable(str, Enum):
    """Variables available in templates."""

    ID = "id"
    TITLE = "title"
    CATEGORY = "category"
    PLATFORM = "platform"
    URL = "url"
    MAIN_PICTURE = "mainPicture"
    ALTERNATIVE_TITLES = "alternativeTitles"
    SYNOPSIS = "synopsis"
    MEDIA_TYPE = "mediaType"
    STATUS = "status"
    MEAN = "mean"
    GENRES = "genres"
    RELEASED_START = "releasedStart"
    RELEASED_END = "releasedEnd"
    SOURCE = "source"
    NUM_EPISODES = "numEpisodes"
    NUM_EPISODES_WATCHED = "numEpisodesWatched"
    STUDIOS = "studios"
    DURATION = "duration"
    NUM_VOLUMES = "numVolumes"
    NUM_VOLUMES_READ = "numVolumesRead"
    NUM_CHAPTERS = "numChapters"
    NUM_CHAPTERS_READ = "numChaptersRead"
    AUTHORS = "authors"
    USER_STATUS = "userStatus"
    USER_SCORE = "userScore"
    USER_START_DATE = "userStartDate"
    USER_FINISH_DATE = "userFinishDate"
    UPDATED_AT = "updatedAt"


def _aliases(titles: AlternativeTitles | None) -> list[str] | None:
    if titles is None:
        return None
    aliases = [t for t in (titles.en, titles.ja) if t]
    aliases.extend(titles.synonyms)
    return aliases or None


def _picture(record: MediaRecord) -> str | None:
    picture = record.main_picture
    if picture is None:
        return None
    return picture.large or picture.medium


def _authors(record: MediaRecord) -> str | None:
    names = [a.full_name for a in record.authors if a.full_name]
    return ", ".join(names) if names else None


def _category(record: MediaRecord) -> str:
    return str(getattr(record.category, "value", record.category))


VARIABLES: dict[Variable, Callable[[MediaRecord], VariableValue]] = {
    Variable.ID: lambda r: r.external_id,
    Variable.TITLE: lambda r: r.title,
    Variable.CATEGORY: _category,
    Variable.PLATFORM: lambda r: r.provider,
    Variable.URL: lambda r: r.url,
    Variable.MAIN_PICTURE: _picture,
    Variable.ALTERNATIVE_TITLES: lambda r: _aliases(r.alternative_titles),
    Variable.SYNOPSIS: lambda r: r.synopsis,
    Variable.MEDIA_TYPE: lambda r: r.media_type,
    Variable.STATUS: lambda r: r.status,
    Variable.MEAN: lambda r: r.mean,
    Variable.GENRES: lambda r: [g.name for g in r.genres] or None,
    Variable.RELEASED_START: lambda r: r.released_start,
    Variable.RELEASED_END: lambda r: r.released_end,
    Variable.SOURCE: lambda r: r.source,
    Variable.NUM_EPISODES: lambda r: r.num_episodes,
    Variable.NUM_EPISODES_WATCHED: lambda r: r.num_episodes_watched,
    Variable.STUDIOS: lambda r: list(r.studios) or None,
    Variable.DURATION: lambda r: r.episode_duration or None,
    Variable.NUM_VOLUMES: lambda r: r.num_volumes,
    Variable.NUM_VOLUMES_READ: lambda r: r.num_volumes_read,
    Variable.NUM_CHAPTERS: lambda r: r.num_chapters,
    Variable.NUM_CHAPTERS_READ: lambda r: r.num_chapters_read,
    Variable.AUTHORS: _authors,
    Variable.USER_STATUS: lambda r: r.user_status,
    Variable.USER_SCORE: lambda r: r.user_score,
    Variable.USER_START_DATE: lambda r: r.user_start_date,
    Variable.USER_FINISH_DATE: lambda r: r.user_finish_date,
    Variable.UPDATED_AT: lambda r: r.updated_at,
}


def lookup_variable(record: MediaRecord, name: str) -> VariableValue:
    """Resolve a variable name against a record.

    Args:
        record: Record to read from
        name: Variable name as written in the template

    Returns:
        The value, or None for unknown variables and missing fields.
    """
    try:
        variable = Variable(name)
    except ValueError:
        return None
    return VARIABLES[variable](record)
