from __future__ import annotations

from kitsuneid.models.catalog import (
    AiringStatus,
    AnimeDetail,
    CatalogEntry,
    DaySchedule,
    DownloadLink,
    EpisodeRef,
    EpisodeVideo,
    QualityOption,
)
from kitsuneid.models.jikan import JikanAnime, JikanPage, JikanSingle
from kitsuneid.models.requests import (
    DetailInput,
    EpisodeInput,
    PageInput,
    SearchInput,
    ServerInput,
)

__all__ = [
    # catalog
    "AiringStatus",
    "CatalogEntry",
    "AnimeDetail",
    "EpisodeRef",
    "EpisodeVideo",
    "QualityOption",
    "DownloadLink",
    "DaySchedule",
    # jikan
    "JikanAnime",
    "JikanPage",
    "JikanSingle",
    # requests
    "PageInput",
    "SearchInput",
    "DetailInput",
    "EpisodeInput",
    "ServerInput",
]
