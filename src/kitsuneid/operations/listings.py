"""Handlers for the ongoing and complete listings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kitsuneid.models.requests import PageInput
from kitsuneid.operations._common import cached, catalog_chain, dump, first_available, validate

if TYPE_CHECKING:
    from kitsuneid.state import AppState

_PAGE_HINT = "Pass page as a positive integer."


async def handle_ongoing(page: object, state: AppState) -> dict:
    """Titles currently airing. Jikan stands in with the current season."""
    validated = validate(PageInput, _PAGE_HINT, page=page)
    log = structlog.get_logger().bind(operation="ongoing", page=validated.page)
    log.info("handler_called")

    attempts = catalog_chain(
        state,
        lambda source: source.ongoing(validated.page),
        lambda: state.jikan.currently_airing(validated.page),
    )
    animes = await cached(
        state,
        f"ongoing:{validated.page}",
        state.settings.cache.ttl.ongoing,
        lambda: first_available("ongoing", attempts),
    )
    log.info("listing_complete", count=len(animes))
    return {"animes": dump(animes)}


async def handle_complete(page: object, state: AppState) -> dict:
    """Finished titles. Jikan stands in with the previous season, forced Complete."""
    validated = validate(PageInput, _PAGE_HINT, page=page)
    log = structlog.get_logger().bind(operation="complete", page=validated.page)
    log.info("handler_called")

    attempts = catalog_chain(
        state,
        lambda source: source.complete(validated.page),
        lambda: state.jikan.previous_season(validated.page),
    )
    animes = await cached(
        state,
        f"complete:{validated.page}",
        state.settings.cache.ttl.complete,
        lambda: first_available("complete", attempts),
    )
    log.info("listing_complete", count=len(animes))
    return {"animes": dump(animes)}
