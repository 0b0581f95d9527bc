"""Jikan (MyAnimeList) adapter.

Jikan publishes a 3 requests/second quota, so every call is paced through the
shared RateLimiter. Identifiers in this namespace are MAL ids.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import structlog

from kitsuneid.models.catalog import AiringStatus
from kitsuneid.normalizer import jikan as normalize

if TYPE_CHECKING:
    from collections.abc import Callable

    from kitsuneid.models.catalog import AnimeDetail, CatalogEntry, DaySchedule
    from kitsuneid.models.jikan import JikanAnime, JikanPage
    from kitsuneid.protocols import FetcherProtocol
    from kitsuneid.ratelimit import RateLimiter

log = structlog.get_logger()

_SEASONS = ("winter", "spring", "summer", "fall")


def previous_season(today: date) -> tuple[int, str]:
    """The broadcast season before the one containing ``today``."""
    index = (today.month - 1) // 3
    if index == 0:
        return today.year - 1, _SEASONS[-1]
    return today.year, _SEASONS[index - 1]


class JikanSource:
    name = "jikan"

    def __init__(
        self,
        fetcher: FetcherProtocol,
        limiter: RateLimiter,
        base_url: str,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._fetcher = fetcher
        self._limiter = limiter
        self.base_url = base_url.rstrip("/")
        self._today = today

    async def _get(self, path: str, **params: object) -> object:
        query = f"?{urlencode(params)}" if params else ""
        url = f"{self.base_url}{path}{query}"
        return await self._limiter.enqueue(lambda: self._fetcher.fetch_json(url))

    async def _page(self, path: str, **params: object) -> JikanPage:
        return normalize.parse_page(await self._get(path, **params))

    async def currently_airing(self, page: int = 1) -> list[CatalogEntry]:
        return normalize.normalize_listing(await self._page("/seasons/now", page=page))

    async def previous_season(self, page: int = 1) -> list[CatalogEntry]:
        """Jikan has no "finished" listing; the last season stands in for it."""
        year, season = previous_season(self._today())
        listing = await self._page(f"/seasons/{year}/{season}", page=page)
        return normalize.normalize_listing(listing, AiringStatus.COMPLETE)

    async def search(self, query: str) -> list[CatalogEntry]:
        listing = await self._page("/anime", q=query, limit=20, order_by="popularity")
        return normalize.normalize_listing(listing)

    async def anime(self, mal_id: int) -> JikanAnime:
        return normalize.parse_single(await self._get(f"/anime/{mal_id}"))

    async def detail(self, mal_id: int) -> AnimeDetail:
        return normalize.normalize_detail(
            normalize.parse_single(await self._get(f"/anime/{mal_id}/full"))
        )

    async def schedule(self) -> list[DaySchedule]:
        """Release calendar, one query per weekday, grouped into day labels."""
        weekdays = list(normalize.DAY_LABELS)
        results = await asyncio.gather(
            *(self._page("/schedules", filter=day) for day in weekdays),
            return_exceptions=True,
        )
        pages: dict[str, JikanPage] = {}
        for day, result in zip(weekdays, results, strict=True):
            if isinstance(result, BaseException):
                log.warning("jikan_schedule_day_failed", day=day, error=str(result))
                continue
            pages[day] = result
        if not pages:
            # Every day failed; surface the first error instead of an empty calendar.
            first_error = next(r for r in results if isinstance(r, BaseException))
            raise first_error
        return normalize.group_schedule(pages)
