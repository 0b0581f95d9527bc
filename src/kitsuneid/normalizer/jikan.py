"""Normalizers for Jikan (MyAnimeList) JSON records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from kitsuneid.errors import ParseError
from kitsuneid.models.catalog import AiringStatus, AnimeDetail, CatalogEntry, DaySchedule
from kitsuneid.models.jikan import JikanAnime, JikanPage, JikanSingle
from kitsuneid.normalizer.episodes import dedupe_entries
from kitsuneid.normalizer.otakudesu import SYNOPSIS_PLACEHOLDER
from kitsuneid.normalizer.strategies import first_present

if TYPE_CHECKING:
    from collections.abc import Mapping

# Jikan weekday filter → day label used by the primary catalog's schedule page
DAY_LABELS: dict[str, str] = {
    "monday": "Senin",
    "tuesday": "Selasa",
    "wednesday": "Rabu",
    "thursday": "Kamis",
    "friday": "Jumat",
    "saturday": "Sabtu",
    "sunday": "Minggu",
}

_STATUS = {
    "currently airing": AiringStatus.ONGOING,
    "finished airing": AiringStatus.COMPLETE,
}


def parse_page(payload: Any) -> JikanPage:
    try:
        return JikanPage.model_validate(payload)
    except PydanticValidationError as exc:
        raise ParseError(f"Unexpected Jikan listing shape: {exc.error_count()} errors") from exc


def parse_single(payload: Any) -> JikanAnime:
    try:
        return JikanSingle.model_validate(payload).data
    except PydanticValidationError as exc:
        raise ParseError(f"Unexpected Jikan record shape: {exc.error_count()} errors") from exc


def primary_title(anime: JikanAnime) -> str | None:
    titles = [t.title for t in anime.titles if t.type.lower() == "default"]
    return first_present(anime.title, *titles, anime.title_english)


def day_label(broadcast_day: str | None) -> str | None:
    """``"Mondays"`` → ``"Senin"``."""
    if not broadcast_day:
        return None
    key = broadcast_day.strip().lower().rstrip("s")
    return DAY_LABELS.get(key, broadcast_day)


def _thumbnail(anime: JikanAnime) -> str | None:
    return first_present(
        anime.images.webp.large_image_url,
        anime.images.jpg.large_image_url,
        anime.images.jpg.image_url,
    )


def _rating(anime: JikanAnime) -> str | None:
    return f"{anime.score:g}" if anime.score is not None else None


def normalize_listing_entry(
    anime: JikanAnime, status: AiringStatus | None = None
) -> CatalogEntry | None:
    title = primary_title(anime)
    if not title:
        return None
    return CatalogEntry(
        title=title,
        identifier=str(anime.mal_id),
        source_url=anime.url,
        thumbnail=_thumbnail(anime),
        episode_count=str(anime.episodes) if anime.episodes else None,
        rating=_rating(anime),
        status=status or _STATUS.get((anime.status or "").lower(), AiringStatus.UNKNOWN),
        media_type=anime.type or "TV",
        air_day=day_label(anime.broadcast.day),
    )


def normalize_listing(page: JikanPage, status: AiringStatus | None = None) -> list[CatalogEntry]:
    """Normalize a result page. ``status`` overrides whatever each record reports."""
    entries = (normalize_listing_entry(anime, status) for anime in page.data)
    return dedupe_entries(entry for entry in entries if entry is not None)


def normalize_detail(anime: JikanAnime) -> AnimeDetail:
    entry = normalize_listing_entry(anime)
    if entry is None:
        raise ParseError(f"Jikan record {anime.mal_id} has no title")
    genres: list[str] = []
    for genre in anime.genres:
        if genre.name not in genres:
            genres.append(genre.name)
    fields = entry.model_dump()
    fields["episode_count"] = entry.episode_count or "?"
    return AnimeDetail(
        **fields,
        synopsis=first_present(anime.synopsis, default=SYNOPSIS_PLACEHOLDER),
        genres=genres,
        studio=anime.studios[0].name if anime.studios else None,
        duration=anime.duration,
        aired_range=anime.aired.string,
    )


def group_schedule(pages: Mapping[str, JikanPage]) -> list[DaySchedule]:
    """Release-calendar pages keyed by weekday filter → day-grouped schedule."""
    schedules: list[DaySchedule] = []
    for weekday, label in DAY_LABELS.items():
        page = pages.get(weekday)
        if page is None:
            continue
        entries = normalize_listing(page, AiringStatus.ONGOING)
        for entry in entries:
            entry.air_day = label
        if entries:
            schedules.append(DaySchedule(day=label, anime_list=entries))
    return schedules
