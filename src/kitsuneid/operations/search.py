"""Handler for title search. Results keep the upstream's ranking."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kitsuneid.models.requests import SearchInput
from kitsuneid.operations._common import cached, catalog_chain, dump, first_available, validate

if TYPE_CHECKING:
    from kitsuneid.state import AppState


async def handle(q: str | None, state: AppState) -> dict:
    validated = validate(
        SearchInput, "Provide a non-empty title to search for (max 200 chars).", q=q
    )
    query = validated.q
    log = structlog.get_logger().bind(operation="search", query=query)
    log.info("handler_called")

    attempts = catalog_chain(
        state,
        lambda source: source.search(query),
        lambda: state.jikan.search(query),
    )
    results = await cached(
        state,
        f"search:{query.lower()}",
        state.settings.cache.ttl.search,
        lambda: first_available("search", attempts),
    )
    log.info("search_complete", count=len(results))
    return {"results": dump(results)}
