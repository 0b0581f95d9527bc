"""Starlette application exposing the operations as JSON GET endpoints."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

import kitsuneid.operations.cache_admin as op_cache
import kitsuneid.operations.detail as op_detail
import kitsuneid.operations.episode as op_episode
import kitsuneid.operations.listings as op_listings
import kitsuneid.operations.schedule as op_schedule
import kitsuneid.operations.search as op_search
import kitsuneid.operations.stream as op_stream
from kitsuneid import __version__
from kitsuneid.config import Settings
from kitsuneid.errors import KitsuneError
from kitsuneid.schedulers import run_cache_sweep_scheduler
from kitsuneid.state import create_app_state, shutdown_app_state

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.requests import Request

    from kitsuneid.state import AppState

log = structlog.get_logger()

ENDPOINTS = [
    "/ongoing",
    "/complete",
    "/schedule",
    "/search",
    "/anime",
    "/episode",
    "/server",
    "/cache/clear",
    "/ping",
]


def _endpoint(
    name: str, call: Callable[[Request, AppState], Awaitable[dict]]
) -> Callable[[Request], Awaitable[JSONResponse]]:
    """Wrap an operation call with the JSON error envelope."""

    async def endpoint(request: Request) -> JSONResponse:
        state: AppState = request.app.state.kitsune
        try:
            return JSONResponse(await call(request, state))
        except KitsuneError as exc:
            log.warning(
                "operation_error",
                operation=name,
                code=exc.code,
                message=exc.message,
                recoverable=exc.recoverable,
            )
            return JSONResponse(exc.to_dict(), status_code=exc.http_status)
        except Exception:
            log.error("operation_unexpected_error", operation=name, exc_info=True)
            return JSONResponse({"error": "Internal server error"}, status_code=500)

    return endpoint


async def index(request: Request) -> JSONResponse:
    return JSONResponse(
        {
            "name": "KitsuneID API",
            "version": __version__,
            "status": "running",
            "endpoints": ENDPOINTS,
        }
    )


async def ping(request: Request) -> JSONResponse:
    return JSONResponse({"pong": True, "time": datetime.now(UTC).isoformat()})


def _routes() -> list[Route]:
    def param(request: Request, name: str) -> str | None:
        return request.query_params.get(name)

    return [
        Route("/", index),
        Route("/ping", ping),
        Route(
            "/ongoing",
            _endpoint(
                "ongoing", lambda r, s: op_listings.handle_ongoing(param(r, "page"), s)
            ),
        ),
        Route(
            "/complete",
            _endpoint(
                "complete", lambda r, s: op_listings.handle_complete(param(r, "page"), s)
            ),
        ),
        Route("/schedule", _endpoint("schedule", lambda r, s: op_schedule.handle(s))),
        Route("/search", _endpoint("search", lambda r, s: op_search.handle(param(r, "q"), s))),
        # A numeric id is a MyAnimeList id; anything else is a slug or a title.
        Route(
            "/anime",
            _endpoint(
                "anime",
                lambda r, s: op_detail.handle(param(r, "slug") or param(r, "id"), s),
            ),
        ),
        Route(
            "/episode",
            _endpoint(
                "episode",
                lambda r, s: op_episode.handle(param(r, "slug") or param(r, "id"), s),
            ),
        ),
        Route("/server", _endpoint("server", lambda r, s: op_stream.handle(param(r, "id"), s))),
        Route(
            "/cache/clear",
            _endpoint("cache_clear", lambda r, s: op_cache.handle_clear(s)),
            methods=["GET", "POST"],
        ),
    ]


def build_app(state: AppState | None = None, settings: Settings | None = None) -> Starlette:
    """Create the ASGI app.

    With ``state`` given (tests), the lifespan neither creates nor closes it
    and no background scheduler is started.
    """

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        if state is not None:
            app.state.kitsune = state
            yield
            return

        app_state = create_app_state(settings or Settings())
        app.state.kitsune = app_state
        sweep_task = asyncio.create_task(run_cache_sweep_scheduler(app_state))
        log.info("server_started", version=__version__, port=app_state.settings.server.port)
        try:
            yield
        finally:
            sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await sweep_task
            await shutdown_app_state(app_state)
            log.info("server_stopping")

    app = Starlette(
        routes=_routes(),
        middleware=[Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"])],
        lifespan=lifespan,
    )
    if state is not None:
        # ASGI test transports do not run the lifespan.
        app.state.kitsune = state
    return app
