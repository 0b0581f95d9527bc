"""Handler for episode pages (stream mirrors and download links)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kitsuneid.models.requests import EpisodeInput
from kitsuneid.operations._common import cached, dump, first_available, scraping_chain, validate

if TYPE_CHECKING:
    from kitsuneid.models.catalog import EpisodeVideo
    from kitsuneid.state import AppState


def _unplayable(video: EpisodeVideo | None) -> bool:
    # Challenge pages parse fine but carry neither mirrors nor downloads.
    if video is None:
        return True
    return not (video.qualities or video.downloads or video.default_stream_url)


async def handle(slug: str | None, state: AppState) -> dict:
    validated = validate(EpisodeInput, "Pass an episode identifier from /anime.", slug=slug)
    log = structlog.get_logger().bind(operation="episode", slug=validated.slug)
    log.info("handler_called")

    attempts = scraping_chain(state, lambda source: source.episode(validated.slug))
    video = await cached(
        state,
        f"episode:{validated.slug}",
        state.settings.cache.ttl.episode,
        lambda: first_available("episode", attempts, empty=_unplayable),
        empty=_unplayable,
    )
    log.info(
        "episode_complete",
        qualities=len(video.qualities),
        downloads=len(video.downloads),
    )
    return dump(video)
