"""Otakudesu catalog adapter: fetch a page, hand it to the normalizer.

The same adapter runs either directly or through the JavaScript-rendering
proxy (``render=True``), which is slower but gets past bot challenges.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, quote_plus

import structlog

from kitsuneid.errors import KitsuneError, ParseError, ValidationError
from kitsuneid.models.catalog import AiringStatus
from kitsuneid.normalizer import otakudesu as normalize

if TYPE_CHECKING:
    from kitsuneid.models.catalog import AnimeDetail, CatalogEntry, DaySchedule, EpisodeVideo
    from kitsuneid.protocols import FetcherProtocol

log = structlog.get_logger()

_IFRAME_SRC = re.compile(r"""src=["']([^"']+)["']""")


def encode_server_token(raw: str, *, nonce: str, action: str, referer: str) -> str:
    """Fold the nonce, action and referer into a mirror's ``data-content`` value.

    Mirrors whose payload cannot be decoded keep their raw value; the missing
    pieces are filled in again at resolution time.
    """
    try:
        params = decode_server_token(raw)
    except ValidationError:
        return raw
    params.update({"nonce": nonce, "action": params.get("action") or action, "referer": referer})
    return base64.b64encode(json.dumps(params, separators=(",", ":")).encode()).decode()


def decode_server_token(token: str) -> dict[str, Any]:
    try:
        padded = token + "=" * (-len(token) % 4)
        params = json.loads(base64.b64decode(padded, validate=False).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError(
            "Malformed server id",
            suggestion="Pass a serverToken exactly as returned by /episode.",
        ) from exc
    if not isinstance(params, dict):
        raise ValidationError(
            "Malformed server id",
            suggestion="Pass a serverToken exactly as returned by /episode.",
        )
    return params


class OtakudesuSource:
    """HTML scraping adapter for one Otakudesu mirror."""

    def __init__(self, fetcher: FetcherProtocol, base_url: str, *, render: bool = False) -> None:
        self._fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.render = render
        self.name = "otakudesu-rendered" if render else "otakudesu"

    @property
    def ajax_url(self) -> str:
        return f"{self.base_url}/wp-admin/admin-ajax.php"

    async def _page(self, path: str) -> str:
        return await self._fetcher.fetch_text(f"{self.base_url}{path}", render=self.render)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def ongoing(self, page: int = 1) -> list[CatalogEntry]:
        path = f"/ongoing-anime/page/{page}/" if page > 1 else "/ongoing-anime/"
        return normalize.normalize_listing(await self._page(path), AiringStatus.ONGOING)

    async def complete(self, page: int = 1) -> list[CatalogEntry]:
        path = f"/complete-anime/page/{page}/" if page > 1 else "/complete-anime/"
        return normalize.normalize_listing(await self._page(path), AiringStatus.COMPLETE)

    async def search(self, query: str) -> list[CatalogEntry]:
        html = await self._page(f"/?s={quote_plus(query)}&post_type=anime")
        return normalize.normalize_search(html)

    async def schedule(self) -> list[DaySchedule]:
        return normalize.normalize_schedule(await self._page("/jadwal-rilis/"))

    # ------------------------------------------------------------------
    # Detail & episodes
    # ------------------------------------------------------------------

    async def detail(self, slug: str) -> AnimeDetail | None:
        html = await self._page(f"/anime/{quote(slug, safe='')}/")
        return normalize.normalize_detail(html, slug)

    async def episode(self, slug: str) -> EpisodeVideo:
        """Episode page with every mirror's server token made self-contained."""
        url = f"{self.base_url}/episode/{quote(slug, safe='')}/"
        html = await self._fetcher.fetch_text(url, render=self.render)
        video = normalize.normalize_episode(html, slug)
        if not video.qualities:
            return video

        actions = normalize.extract_ajax_actions(html)
        try:
            nonce = await self._nonce(actions.nonce, referer=url)
        except KitsuneError as exc:
            # Tokens stay usable: resolution fetches a fresh nonce when missing.
            log.warning("nonce_fetch_failed", source=self.name, slug=slug, error=exc.message)
            nonce = ""

        for option in video.qualities:
            option.server_token = encode_server_token(
                option.server_token, nonce=nonce, action=actions.stream, referer=url
            )
        return video

    async def _nonce(self, action: str, *, referer: str) -> str:
        body = await self._fetcher.post_form(self.ajax_url, {"action": action}, referer)
        try:
            data = json.loads(body).get("data")
        except (json.JSONDecodeError, AttributeError) as exc:
            raise ParseError("Nonce response was not a JSON object") from exc
        return data if isinstance(data, str) else ""

    async def resolve_server(self, token: str) -> str | None:
        """Trade a server token for the playable embed URL, or ``None``."""
        params = decode_server_token(token)
        referer = str(params.pop("referer", None) or f"{self.base_url}/")
        params.setdefault("action", normalize.DEFAULT_STREAM_ACTION)
        if not params.get("nonce"):
            params["nonce"] = await self._nonce(normalize.DEFAULT_NONCE_ACTION, referer=referer)

        form = {key: str(value) for key, value in params.items()}
        body = await self._fetcher.post_form(self.ajax_url, form, referer)
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ParseError("Server response was not JSON") from exc

        encoded = payload.get("data") if isinstance(payload, dict) else None
        if not encoded:
            return None
        try:
            embed = base64.b64decode(encoded).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise ParseError("Server response data was not base64 HTML") from exc

        match = _IFRAME_SRC.search(embed)
        return match.group(1) if match else None
