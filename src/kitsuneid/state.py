"""Application state container.

AppState is created once at server startup (inside the Starlette lifespan)
and handed to every operation handler. It owns the shared HTTP client, the
response cache, the Jikan rate limiter and the resolver memo.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from kitsuneid.cache import TTLCache
from kitsuneid.errors import KitsuneError
from kitsuneid.fetcher import Fetcher, build_http_client
from kitsuneid.ratelimit import RateLimiter
from kitsuneid.resolver import IdentifierResolver
from kitsuneid.sources import JikanSource, OtakudesuSource

if TYPE_CHECKING:
    import httpx

    from kitsuneid.config import Settings
    from kitsuneid.models.catalog import CatalogEntry
    from kitsuneid.protocols import CacheProtocol, FetcherProtocol

log = structlog.get_logger()


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every operation handler."""

    settings: Settings
    http_client: httpx.AsyncClient
    fetcher: FetcherProtocol
    cache: CacheProtocol
    limiter: RateLimiter
    resolver: IdentifierResolver
    otakudesu: OtakudesuSource
    jikan: JikanSource
    # Present only when a render proxy is configured.
    otakudesu_rendered: OtakudesuSource | None = None
    owns_client: bool = True


def create_app_state(settings: Settings, client: httpx.AsyncClient | None = None) -> AppState:
    """Wire every component from ``settings``.

    Tests pass their own ``client`` (usually mocked with respx); the state
    then leaves closing it to the caller.
    """
    owns_client = client is None
    http_client = client if client is not None else build_http_client(settings.fetcher)
    fetcher = Fetcher(http_client, settings.fetcher)

    base_url = settings.otakudesu.base_url
    direct = OtakudesuSource(fetcher, base_url, render=settings.otakudesu.always_render)
    rendered = None
    if fetcher.can_render and not settings.otakudesu.always_render:
        rendered = OtakudesuSource(fetcher, base_url, render=True)

    limiter = RateLimiter(settings.jikan.min_interval_seconds, name="jikan")
    jikan = JikanSource(fetcher, limiter, settings.jikan.base_url)

    # Resolution targets the primary scraping namespace; the direct source is
    # tried first and the rendered one only if it raises.
    async def search_target(query: str) -> list[CatalogEntry]:
        try:
            return await direct.search(query)
        except KitsuneError:
            if rendered is None:
                raise
            return await rendered.search(query)

    resolver = IdentifierResolver(search_target, min_score=settings.resolver.min_score)

    log.info(
        "app_state_created",
        primary=settings.catalog.primary,
        render_proxy=fetcher.can_render,
        jikan_interval=round(limiter.min_interval, 3),
    )
    return AppState(
        settings=settings,
        http_client=http_client,
        fetcher=fetcher,
        cache=TTLCache(),
        limiter=limiter,
        resolver=resolver,
        otakudesu=direct,
        jikan=jikan,
        otakudesu_rendered=rendered,
        owns_client=owns_client,
    )


async def shutdown_app_state(state: AppState) -> None:
    await state.limiter.shutdown()
    if state.owns_client:
        await state.http_client.aclose()
    log.info("app_state_closed")
