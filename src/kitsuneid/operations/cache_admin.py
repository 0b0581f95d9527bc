from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from kitsuneid.state import AppState


async def handle_clear(state: AppState) -> dict:
    """Drop every cached response. Resolved identifiers are kept."""
    cleared = state.cache.clear()
    structlog.get_logger().info("cache_cleared", cleared=cleared)
    return {"cleared": cleared}
