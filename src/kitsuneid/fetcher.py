"""Outbound HTTP client for every upstream source.

All network I/O goes through a single Fetcher instance. The Fetcher receives
an httpx.AsyncClient via constructor injection; the application state owns
the client lifecycle. No caching and no retries happen here: every failure is
raised as a typed KitsuneError and the operations layer decides on fallbacks.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urljoin

import httpx
import structlog

from kitsuneid.config import FetcherSettings
from kitsuneid.errors import (
    FetchTimeoutError,
    KitsuneError,
    NetworkError,
    NotFoundError,
    ParseError,
    UpstreamError,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

log = structlog.get_logger()


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    settings = settings or FetcherSettings()
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={
            "User-Agent": settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "id-ID,id;q=0.9,en-US;q=0.8",
            "Accept-Encoding": "gzip, deflate, br",
            "Cache-Control": "no-cache",
        },
        limits=httpx.Limits(
            max_connections=20,
            max_keepalive_connections=10,
        ),
    )


def build_render_url(template: str, url: str) -> str:
    """Wrap ``url`` in a render-proxy URL template containing ``{url}``."""
    return template.replace("{url}", quote(url, safe=""))


class Fetcher:
    """HTTP fetcher with manual redirect handling and typed failures."""

    def __init__(self, client: httpx.AsyncClient, settings: FetcherSettings | None = None) -> None:
        self._client = client
        self._settings = settings or FetcherSettings()

    @property
    def can_render(self) -> bool:
        return bool(self._settings.render_proxy_url)

    async def fetch_text(
        self,
        url: str,
        *,
        render: bool = False,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """GET ``url`` and return the decoded body.

        With ``render=True`` the request goes through the configured
        JavaScript-rendering proxy and gets the longer timeout.
        """
        if render:
            if not self._settings.render_proxy_url:
                raise UpstreamError(
                    f"Render proxy requested for {url} but none is configured",
                    suggestion="Set fetcher.render_proxy_url or disable rendering.",
                )
            target = build_render_url(self._settings.render_proxy_url, url)
            timeout = self._settings.render_timeout_seconds
        else:
            target = url
            timeout = self._settings.timeout_seconds

        response = await self._get(target, url=url, timeout=timeout, headers=headers)
        log.info(
            "fetch_complete",
            url=url,
            render=render,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response.text

    async def fetch_json(
        self,
        url: str,
        *,
        render: bool = False,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        merged = {"Accept": "application/json", **(headers or {})}
        text = await self.fetch_text(url, render=render, headers=merged)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Invalid JSON from {url}: {exc}",
                suggestion="The upstream API may have changed its response format.",
            ) from exc

    async def post_form(self, url: str, form: Mapping[str, str], referer: str) -> str:
        """POST an urlencoded form the way the site's own XHR calls do."""
        headers = {
            "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
            "Referer": referer,
            "Origin": _origin(url),
            "X-Requested-With": "XMLHttpRequest",
            "Accept": "application/json, text/javascript, */*; q=0.01",
        }
        try:
            response = await self._client.post(
                url,
                data=dict(form),
                headers=headers,
                timeout=self._settings.post_timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise FetchTimeoutError(
                f"Timed out posting to {url}",
                suggestion="The upstream may be slow or blocking requests.",
                recoverable=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(
                f"Network error posting to {url}: {exc}",
                suggestion="The upstream may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        _raise_for_status(response, url)
        log.info("post_complete", url=url, status_code=response.status_code)
        return response.text

    async def _get(
        self,
        target: str,
        *,
        url: str,
        timeout: float,
        headers: Mapping[str, str] | None,
    ) -> httpx.Response:
        current_url = target
        max_redirects = self._settings.max_redirects

        try:
            for hop in range(max_redirects + 1):
                response = await self._client.get(current_url, headers=headers, timeout=timeout)

                if response.is_redirect and "location" in response.headers:
                    if hop == max_redirects:
                        raise NetworkError(
                            f"Too many redirects fetching {url}",
                            suggestion="The upstream has an unusually long redirect chain.",
                        )
                    current_url = urljoin(current_url, response.headers["location"])
                    log.debug("fetch_redirect", url=url, location=current_url)
                    continue

                _raise_for_status(response, url)
                return response

        except KitsuneError:
            raise
        except httpx.TimeoutException as exc:
            raise FetchTimeoutError(
                f"Timed out fetching {url} after {timeout:g}s",
                suggestion="The upstream may be slow or blocking requests.",
                recoverable=True,
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(
                f"Network error fetching {url}: {exc}",
                suggestion="The upstream may be temporarily unavailable.",
                recoverable=True,
            ) from exc

        # Unreachable but satisfies the type checker
        raise NetworkError(f"Redirect loop fetching {url}")


def _raise_for_status(response: httpx.Response, url: str) -> None:
    if response.is_success:
        return
    if response.status_code == 404:
        raise NotFoundError(
            f"HTTP 404 fetching {url}",
            suggestion="The requested page does not exist upstream.",
        )
    raise UpstreamError(
        f"HTTP {response.status_code} fetching {url}",
        suggestion="The upstream may be temporarily unavailable or rate limiting.",
        recoverable=True,
    )


def _origin(url: str) -> str:
    parsed = httpx.URL(url)
    return f"{parsed.scheme}://{parsed.host}"
