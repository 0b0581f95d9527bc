"""Background scheduler coroutines."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from kitsuneid.state import AppState

log = structlog.get_logger()


async def run_cache_sweep_scheduler(state: AppState) -> None:
    """Evict expired cache entries every ``cache.sweep_interval_seconds``."""
    interval = state.settings.cache.sweep_interval_seconds

    while True:
        await asyncio.sleep(interval)
        try:
            removed = state.cache.sweep()
        except Exception:
            log.warning("cache_sweep_error", exc_info=True)
            continue
        log.info("cache_sweep_complete", removed=removed)
