"""Stored record models.

Store responses mix several record kinds in one list. Each stored item
carries an ``entity_type`` discriminant; ``parse_record`` resolves it into
one typed model at ingestion so nothing downstream inspects raw dicts.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class StoredRecord(BaseModel):
    """Fields shared by every stored record."""

    pk: str = Field(..., alias="PK", min_length=1)
    sk: str = Field(..., alias="SK", min_length=1)

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)


class Profile(StoredRecord):
    """User profile."""

    entity_type: Literal["PROFILE"] = "PROFILE"
    name: str
    subscription_tier: str


class HistoryEntry(StoredRecord):
    """Viewing history entry for one user."""

    entity_type: Literal["VIEWING"] = "VIEWING"
    movie_id: str
    watch_duration: int = Field(..., ge=0)
    completed: bool = False
    watch_date: str | None = None


class Languages(BaseModel):
    """Audio and subtitle language availability."""

    audio: list[str] = Field(default_factory=list)
    subtitles: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class Metadata(StoredRecord):
    """Movie or series metadata."""

    entity_type: Literal["MOVIE", "SERIES"]
    title: str = Field(..., min_length=1)
    genre: list[str] = Field(default_factory=list)
    release_year: int
    rating: str
    languages: Languages = Field(default_factory=Languages)
    duration: int = Field(..., ge=0)
    director: str | None = None
    creator: str | None = None
    cast: list[str] = Field(default_factory=list)


class Stats(StoredRecord):
    """Viewing statistics for one piece of content."""

    entity_type: Literal["MOVIE_STATS", "SERIES_STATS"]
    initial_trending: float
    release_popularity: float
    target_demographic: list[str] = Field(default_factory=list)
    language_availability: int = Field(..., ge=0)
    total_views: int = 0
    average_rating: float = 0
    completion_rate: float = 0


class Episode(StoredRecord):
    """One episode of a series."""

    entity_type: Literal["EPISODE"] = "EPISODE"
    title: str = Field(..., min_length=1)
    duration: int = Field(..., ge=0)
    synopsis: str = ""
    season_number: int = Field(..., ge=1)
    episode_number: int = Field(..., ge=1)


Record = Annotated[
    Union[Profile, HistoryEntry, Metadata, Stats, Episode],
    Field(discriminator="entity_type"),
]

_record_adapter: TypeAdapter[Record] = TypeAdapter(Record)


def parse_record(item: Mapping[str, Any]) -> Record:
    """Resolve a raw stored item into its record model.

    Raises:
        pydantic.ValidationError: If ``entity_type`` is missing or unknown,
            or the item does not match the selected model
    """
    return _record_adapter.validate_python(dict(item))
