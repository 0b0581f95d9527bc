"""Raw Jikan (MyAnimeList aggregator) payload shapes.

Only the fields the normalizer reads are declared; everything else is
ignored. These models never leave ``kitsuneid.normalizer`` and
``kitsuneid.sources``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class _Raw(BaseModel):
    model_config = ConfigDict(extra="ignore")


class JikanImage(_Raw):
    image_url: str | None = None
    large_image_url: str | None = None


class JikanImages(_Raw):
    jpg: JikanImage = JikanImage()
    webp: JikanImage = JikanImage()


class JikanNamed(_Raw):
    name: str


class JikanTitle(_Raw):
    type: str
    title: str


class JikanAired(_Raw):
    string: str | None = None


class JikanBroadcast(_Raw):
    day: str | None = None  # "Mondays"
    string: str | None = None


class JikanAnime(_Raw):
    mal_id: int
    url: str | None = None
    images: JikanImages = JikanImages()
    title: str | None = None
    title_english: str | None = None
    titles: list[JikanTitle] = []
    type: str | None = None
    episodes: int | None = None
    status: str | None = None  # "Currently Airing" | "Finished Airing" | "Not yet aired"
    score: float | None = None
    synopsis: str | None = None
    duration: str | None = None
    aired: JikanAired = JikanAired()
    broadcast: JikanBroadcast = JikanBroadcast()
    genres: list[JikanNamed] = []
    studios: list[JikanNamed] = []


class JikanPage(_Raw):
    data: list[JikanAnime] = []


class JikanSingle(_Raw):
    data: JikanAnime
