"""Content ingestion input models."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .records import Languages

ContentType = Literal["MOVIE", "SERIES"]


class ContentMetadata(BaseModel):
    """A movie or series to add to the content library."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    type: ContentType
    genre: list[str] = Field(default_factory=list)
    release_year: int = Field(..., ge=1888)
    rating: str = Field(..., min_length=1)
    languages: Languages = Field(default_factory=Languages)
    duration: int = Field(..., ge=0)
    director: str | None = None
    creator: str | None = None
    cast: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)


class SeriesEpisode(BaseModel):
    """One episode belonging to a series."""

    series_id: str = Field(..., min_length=1)
    season_number: int = Field(..., ge=1)
    episode_number: int = Field(..., ge=1)
    title: str = Field(..., min_length=1)
    duration: int = Field(..., ge=0)
    synopsis: str = ""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @property
    def episode_code(self) -> str:
        return f"S{self.season_number:02d}E{self.episode_number:02d}"


class ContentStats(BaseModel):
    """Initial statistics for a piece of content."""

    content_id: str = Field(..., min_length=1)
    initial_trending: float = Field(..., ge=0)
    release_popularity: float = Field(..., ge=0)
    target_demographic: list[str] = Field(default_factory=list)
    language_availability: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)
