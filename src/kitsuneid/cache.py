"""In-memory TTL cache shared by every operation.

``get`` is authoritative about expiry: an expired entry is deleted on read and
reported as a miss, so callers never see data older than its TTL regardless of
when the periodic sweep last ran. ``sweep`` only bounds memory held by entries
nobody reads again; it runs from ``schedulers.run_cache_sweep_scheduler``.

Nothing here is persisted: the cache is lost on restart. There is no size
bound or LRU policy; the key space is the set of distinct queries served.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger()


@dataclass(slots=True)
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Keyed store with per-entry expiry. Implements CacheProtocol."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def sweep(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        log.debug("cache_sweep", removed=len(expired), remaining=len(self._entries))
        return len(expired)

    def clear(self) -> int:
        """Drop everything. Returns the number of entries removed."""
        count = len(self._entries)
        self._entries.clear()
        return count
