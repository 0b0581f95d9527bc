"""Unit tests for kitsuneid.fetcher."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from kitsuneid.config import FetcherSettings
from kitsuneid.errors import (
    ErrorCode,
    FetchTimeoutError,
    KitsuneError,
    NetworkError,
    NotFoundError,
    ParseError,
    UpstreamError,
)
from kitsuneid.fetcher import Fetcher, build_http_client, build_render_url

RENDER_TEMPLATE = "https://render.example/?api_key=k&render=true&url={url}"

# ---------------------------------------------------------------------------
# build_http_client / build_render_url
# ---------------------------------------------------------------------------


class TestBuildHttpClient:
    async def test_client_configuration(self) -> None:
        client = build_http_client()
        assert isinstance(client, httpx.AsyncClient)
        # follow_redirects is False (we handle redirects manually)
        assert client.follow_redirects is False
        assert "br" in client.headers["accept-encoding"]
        assert client.headers["accept-language"].startswith("id-ID")
        await client.aclose()


class TestBuildRenderUrl:
    def test_target_is_url_encoded(self) -> None:
        url = build_render_url(RENDER_TEMPLATE, "https://otakudesu.cloud/?s=a b&x=1")
        assert url == (
            "https://render.example/?api_key=k&render=true"
            "&url=https%3A%2F%2Fotakudesu.cloud%2F%3Fs%3Da%20b%26x%3D1"
        )


# ---------------------------------------------------------------------------
# Fetcher.fetch_text / fetch_json
# ---------------------------------------------------------------------------


class TestFetchText:
    @respx.mock
    async def test_successful_fetch(self) -> None:
        respx.get("https://otakudesu.cloud/ongoing-anime/").mock(
            return_value=httpx.Response(200, text="<html>ok</html>")
        )
        async with httpx.AsyncClient() as client:
            result = await Fetcher(client).fetch_text("https://otakudesu.cloud/ongoing-anime/")
        assert result == "<html>ok</html>"

    @respx.mock
    async def test_relative_redirect_resolved(self) -> None:
        respx.get("https://otakudesu.cloud/old/").mock(
            return_value=httpx.Response(301, headers={"location": "/new/"})
        )
        respx.get("https://otakudesu.cloud/new/").mock(
            return_value=httpx.Response(200, text="moved")
        )
        async with httpx.AsyncClient() as client:
            result = await Fetcher(client).fetch_text("https://otakudesu.cloud/old/")
        assert result == "moved"

    @respx.mock
    async def test_redirect_chain_within_limit(self) -> None:
        for i in range(5):
            respx.get(f"https://example.com/r{i}").mock(
                return_value=httpx.Response(302, headers={"location": f"/r{i + 1}"})
            )
        respx.get("https://example.com/r5").mock(return_value=httpx.Response(200, text="final"))
        async with httpx.AsyncClient() as client:
            assert await Fetcher(client).fetch_text("https://example.com/r0") == "final"

    @respx.mock
    async def test_too_many_redirects(self) -> None:
        for i in range(3):
            respx.get(f"https://example.com/r{i}").mock(
                return_value=httpx.Response(302, headers={"location": f"/r{i + 1}"})
            )
        respx.get("https://example.com/r3").mock(return_value=httpx.Response(200, text="final"))
        async with httpx.AsyncClient() as client:
            fetcher = Fetcher(client, FetcherSettings(max_redirects=2))
            with pytest.raises(NetworkError) as exc_info:
                await fetcher.fetch_text("https://example.com/r0")
        assert exc_info.value.code == ErrorCode.NETWORK_ERROR

    @respx.mock
    async def test_redirect_loop_terminates(self) -> None:
        respx.get("https://example.com/loop").mock(
            return_value=httpx.Response(302, headers={"location": "/loop"})
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(NetworkError):
                await Fetcher(client).fetch_text("https://example.com/loop")

    @respx.mock
    async def test_404_raises_not_found(self) -> None:
        respx.get("https://example.com/missing").mock(return_value=httpx.Response(404))
        async with httpx.AsyncClient() as client:
            with pytest.raises(NotFoundError) as exc_info:
                await Fetcher(client).fetch_text("https://example.com/missing")
        assert exc_info.value.http_status == 404

    @respx.mock
    async def test_error_status_raises_upstream_error(self) -> None:
        respx.get("https://example.com/busy").mock(return_value=httpx.Response(503))
        async with httpx.AsyncClient() as client:
            with pytest.raises(UpstreamError) as exc_info:
                await Fetcher(client).fetch_text("https://example.com/busy")
        assert "503" in exc_info.value.message
        assert exc_info.value.recoverable is True

    @respx.mock
    async def test_connect_error_raises_network_error(self) -> None:
        respx.get("https://example.com/down").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(NetworkError):
                await Fetcher(client).fetch_text("https://example.com/down")

    @respx.mock
    async def test_timeout_raises_fetch_timeout(self) -> None:
        respx.get("https://example.com/slow").mock(side_effect=httpx.ReadTimeout("too slow"))
        async with httpx.AsyncClient() as client:
            with pytest.raises(FetchTimeoutError) as exc_info:
                await Fetcher(client).fetch_text("https://example.com/slow")
        assert exc_info.value.code == ErrorCode.TIMEOUT


class TestRender:
    async def test_render_without_proxy_is_an_error(self) -> None:
        async with httpx.AsyncClient() as client:
            fetcher = Fetcher(client)
            assert fetcher.can_render is False
            with pytest.raises(UpstreamError):
                await fetcher.fetch_text("https://otakudesu.cloud/", render=True)

    @respx.mock
    async def test_render_goes_through_proxy(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.params["url"])
            return httpx.Response(200, text="<html>rendered</html>")

        respx.get("https://render.example/").mock(side_effect=handler)
        async with httpx.AsyncClient() as client:
            fetcher = Fetcher(client, FetcherSettings(render_proxy_url=RENDER_TEMPLATE))
            assert fetcher.can_render is True
            result = await fetcher.fetch_text("https://otakudesu.cloud/anime/x/", render=True)

        assert result == "<html>rendered</html>"
        assert seen == ["https://otakudesu.cloud/anime/x/"]


class TestFetchJson:
    @respx.mock
    async def test_parses_json(self) -> None:
        route = respx.get("https://api.jikan.moe/v4/anime/1").mock(
            return_value=httpx.Response(200, json={"data": {"mal_id": 1}})
        )
        async with httpx.AsyncClient() as client:
            payload = await Fetcher(client).fetch_json("https://api.jikan.moe/v4/anime/1")
        assert payload == {"data": {"mal_id": 1}}
        assert route.calls.last.request.headers["accept"] == "application/json"

    @respx.mock
    async def test_invalid_json_raises_parse_error(self) -> None:
        respx.get("https://api.jikan.moe/v4/anime/1").mock(
            return_value=httpx.Response(200, text="<html>maintenance</html>")
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(ParseError):
                await Fetcher(client).fetch_json("https://api.jikan.moe/v4/anime/1")


# ---------------------------------------------------------------------------
# Fetcher.post_form
# ---------------------------------------------------------------------------


class TestPostForm:
    @respx.mock
    async def test_sends_form_with_xhr_headers(self) -> None:
        route = respx.post("https://otakudesu.cloud/wp-admin/admin-ajax.php").mock(
            return_value=httpx.Response(200, json={"data": "n0nce"})
        )
        async with httpx.AsyncClient() as client:
            body = await Fetcher(client).post_form(
                "https://otakudesu.cloud/wp-admin/admin-ajax.php",
                {"action": "act"},
                "https://otakudesu.cloud/episode/x/",
            )

        assert json.loads(body) == {"data": "n0nce"}
        request = route.calls.last.request
        assert request.content == b"action=act"
        assert request.headers["x-requested-with"] == "XMLHttpRequest"
        assert request.headers["referer"] == "https://otakudesu.cloud/episode/x/"
        assert request.headers["origin"] == "https://otakudesu.cloud"

    @respx.mock
    async def test_post_error_status(self) -> None:
        respx.post("https://otakudesu.cloud/wp-admin/admin-ajax.php").mock(
            return_value=httpx.Response(403)
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(KitsuneError) as exc_info:
                await Fetcher(client).post_form(
                    "https://otakudesu.cloud/wp-admin/admin-ajax.php", {"action": "a"}, "r"
                )
        assert exc_info.value.code == ErrorCode.UPSTREAM_ERROR

    @respx.mock
    async def test_post_timeout(self) -> None:
        respx.post("https://otakudesu.cloud/wp-admin/admin-ajax.php").mock(
            side_effect=httpx.ConnectTimeout("slow")
        )
        async with httpx.AsyncClient() as client:
            with pytest.raises(FetchTimeoutError):
                await Fetcher(client).post_form(
                    "https://otakudesu.cloud/wp-admin/admin-ajax.php", {"action": "a"}, "r"
                )
