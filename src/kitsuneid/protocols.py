"""Protocol interfaces for swappable components.

Sources, operations and AppState reference these protocols, not the concrete
implementations, so tests can pass lightweight in-memory stand-ins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Mapping


class CacheProtocol(Protocol):
    """Interface for the response cache backend."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None: ...

    def delete(self, key: str) -> None: ...

    def sweep(self) -> int: ...

    def clear(self) -> int: ...


class FetcherProtocol(Protocol):
    """Interface for the outbound HTTP client."""

    @property
    def can_render(self) -> bool: ...

    async def fetch_text(
        self,
        url: str,
        *,
        render: bool = False,
        headers: Mapping[str, str] | None = None,
    ) -> str: ...

    async def fetch_json(
        self,
        url: str,
        *,
        render: bool = False,
        headers: Mapping[str, str] | None = None,
    ) -> Any: ...

    async def post_form(self, url: str, form: Mapping[str, str], referer: str) -> str: ...
