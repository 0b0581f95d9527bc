"""Handler for the weekly release schedule.

The site's own schedule page is always tried first. Jikan's release calendar
has a different shape (one query per weekday) and is only the fallback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kitsuneid.operations._common import cached, catalog_chain, dump, first_available

if TYPE_CHECKING:
    from kitsuneid.state import AppState


async def handle(state: AppState) -> dict:
    log = structlog.get_logger().bind(operation="schedule")
    log.info("handler_called")

    attempts = catalog_chain(
        state,
        lambda source: source.schedule(),
        state.jikan.schedule,
        scraped_first=True,
    )
    schedules = await cached(
        state,
        "schedule",
        state.settings.cache.ttl.schedule,
        lambda: first_available("schedule", attempts),
    )
    log.info("schedule_complete", days=len(schedules))
    return {"schedules": dump(schedules)}
