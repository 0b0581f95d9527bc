"""Normalized catalog schema shared by every source.

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``).
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AiringStatus(StrEnum):
    ONGOING = "Ongoing"
    COMPLETE = "Complete"
    UNKNOWN = "Unknown"


class _Schema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CatalogEntry(_Schema):
    """One title in a listing (ongoing, complete, search or schedule result)."""

    title: str
    identifier: str  # Unique within its source namespace
    source_url: str | None = None
    thumbnail: str | None = None
    episode_count: str | None = None  # "12", "1-12", "?" ... upstream formats vary
    rating: str | None = None
    status: AiringStatus = AiringStatus.UNKNOWN
    media_type: str = "TV"
    air_day: str | None = None


class EpisodeRef(_Schema):
    title: str
    episode_number: str  # May be fractional, e.g. "12.5"
    identifier: str


class AnimeDetail(CatalogEntry):
    synopsis: str
    genres: list[str] = Field(default_factory=list)  # Unique, insertion order kept
    studio: str | None = None
    duration: str | None = None
    aired_range: str | None = None
    episodes: list[EpisodeRef] = Field(default_factory=list)  # Ascending by number


class QualityOption(_Schema):
    quality_label: str
    server_label: str
    server_token: str  # Opaque; must come back unmodified to the server operation


class DownloadLink(_Schema):
    quality_label: str
    host_label: str
    url: str


class EpisodeVideo(_Schema):
    title: str
    qualities: list[QualityOption] = Field(default_factory=list)
    default_stream_url: str | None = None
    prev_episode_id: str | None = None
    next_episode_id: str | None = None
    downloads: list[DownloadLink] = Field(default_factory=list)


class DaySchedule(_Schema):
    day: str
    anime_list: list[CatalogEntry] = Field(default_factory=list)
