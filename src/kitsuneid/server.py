"""HTTP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Honour the PORT environment variable
- Start uvicorn with the Starlette app (whose lifespan owns AppState)
"""

from __future__ import annotations

import logging
import os
import sys

import structlog
import uvicorn

from kitsuneid.config import Settings
from kitsuneid.transport import build_app

log = structlog.get_logger()


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [*shared_processors, structlog.processors.JSONRenderer()]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _resolve_settings() -> Settings:
    # Hosting platforms hand out the port as plain PORT.
    port = os.environ.get("PORT")
    if port and port.isdigit():
        settings = Settings()
        return settings.model_copy(
            update={"server": settings.server.model_copy(update={"port": int(port)})}
        )
    return Settings()


def main() -> None:
    settings = _resolve_settings()
    _setup_logging(settings)
    log.info("server_starting", host=settings.server.host, port=settings.server.port)

    uvicorn.run(
        build_app(settings=settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


if __name__ == "__main__":
    main()
