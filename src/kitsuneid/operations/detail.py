"""Handler for anime detail lookups.

Three kinds of input are accepted:
  - a catalog slug, fetched directly from the scraping sources. A slug that
    misses is retried as a title, since short titles look like slugs;
  - a free-text title, resolved to a slug first;
  - a MyAnimeList id, whose titles are looked up on Jikan and resolved to a
    slug. If the scraped detail is unavailable after a successful resolution,
    Jikan's own record is served instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kitsuneid.errors import KitsuneError, NotFoundError
from kitsuneid.models.catalog import AiringStatus
from kitsuneid.models.requests import DetailInput
from kitsuneid.operations._common import cached, dump, first_available, scraping_chain, validate

if TYPE_CHECKING:
    from collections.abc import Callable

    from kitsuneid.models.catalog import AnimeDetail
    from kitsuneid.state import AppState

log = structlog.get_logger()


async def handle(slug: str | None, state: AppState, *, mal_id: int | None = None) -> dict:
    validated = validate(
        DetailInput,
        "Pass a catalog slug, an anime title, or a numeric MyAnimeList id.",
        slug=slug,
        mal_id=mal_id,
    )
    handler_log = log.bind(operation="detail", slug=validated.slug, mal_id=validated.mal_id)
    handler_log.info("handler_called")

    if validated.mal_id is not None:
        detail = await _by_mal_id(state, validated.mal_id)
    elif validated.is_slug:
        detail = await _by_slug_or_title(state, validated.slug)
    else:
        detail = await _by_title(state, validated.slug)

    handler_log.info("detail_complete", identifier=detail.identifier, status=detail.status)
    return dump(detail)


def _detail_ttl(state: AppState) -> Callable[[AnimeDetail], float]:
    ttl = state.settings.cache.ttl

    def for_detail(detail: AnimeDetail) -> float:
        if detail.status is AiringStatus.COMPLETE:
            return ttl.detail_complete
        return ttl.detail_ongoing

    return for_detail


async def _fetch_scraped(state: AppState, slug: str) -> AnimeDetail | None:
    return await cached(
        state,
        f"detail:otakudesu:{slug}",
        _detail_ttl(state),
        lambda: first_available(
            "detail", scraping_chain(state, lambda source: source.detail(slug))
        ),
    )


async def _by_slug(state: AppState, slug: str) -> AnimeDetail:
    detail = await _fetch_scraped(state, slug)
    if detail is None:
        raise NotFoundError(
            f"No anime found for slug '{slug}'",
            suggestion="Use an identifier returned by /ongoing, /complete or /search.",
        )
    return detail


async def _by_title(state: AppState, title: str) -> AnimeDetail:
    resolved = await state.resolver.resolve(title)
    if resolved is None:
        raise NotFoundError(
            f"No catalog entry matches '{title}'",
            suggestion="Try a shorter or differently spelled title.",
        )
    return await _by_slug(state, resolved)


async def _by_slug_or_title(state: AppState, slug: str) -> AnimeDetail:
    """Slug-shaped input like ``frieren`` may still be a title; resolve it on a miss."""
    try:
        return await _by_slug(state, slug)
    except NotFoundError:
        log.info("slug_missed_resolving_title", operation="detail", slug=slug)

    resolved = await state.resolver.resolve(slug)
    if resolved is None or resolved == slug:
        raise NotFoundError(
            f"No anime found for slug or title '{slug}'",
            suggestion="Use an identifier returned by /ongoing, /complete or /search.",
        )
    return await _by_slug(state, resolved)


async def _by_mal_id(state: AppState, mal_id: int) -> AnimeDetail:
    ttl = state.settings.cache.ttl
    anime = await cached(
        state, f"jikan:anime:{mal_id}", ttl.metadata, lambda: state.jikan.anime(mal_id)
    )

    resolved: str | None = None
    for title in dict.fromkeys(t for t in (anime.title, anime.title_english) if t):
        resolved = await state.resolver.resolve(title)
        if resolved is not None:
            break
    if resolved is None:
        raise NotFoundError(
            f"MyAnimeList id {mal_id} ({anime.title}) has no catalog entry",
            suggestion="The title may not be available on the catalog yet.",
        )

    try:
        detail = await _fetch_scraped(state, resolved)
    except KitsuneError as exc:
        log.warning("scraped_detail_failed", mal_id=mal_id, slug=resolved, error=exc.message)
        detail = None
    if detail is not None:
        return detail

    log.info("fallback_used", operation="detail", source=state.jikan.name, mal_id=mal_id)
    return await cached(
        state,
        f"detail:jikan:{mal_id}",
        _detail_ttl(state),
        lambda: state.jikan.detail(mal_id),
    )
