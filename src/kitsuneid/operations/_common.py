"""Pieces shared by every operation handler: validation, caching, fallbacks.

Handlers follow one shape: validate input, check the cache, walk an ordered
chain of sources until one yields usable data, store the result, return a
JSON-ready dict. This module is the only place that decides whether a source
failure ends the request or moves on to the next source.
"""

from __future__ import annotations

from collections.abc import Sized
from functools import partial
from typing import TYPE_CHECKING, Any, TypeVar

import pydantic
import structlog

from kitsuneid.errors import KitsuneError, UpstreamError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence

    from kitsuneid.sources import OtakudesuSource
    from kitsuneid.state import AppState

    Attempt = tuple[str, Callable[[], Awaitable[Any]]]

log = structlog.get_logger()

T = TypeVar("T")
M = TypeVar("M", bound=pydantic.BaseModel)


def validate(model: type[M], suggestion: str, **values: object) -> M:
    """Build a request model, turning pydantic errors into ``ValidationError``."""
    try:
        return model(**values)
    except pydantic.ValidationError as exc:
        raise ValidationError(_first_message(exc), suggestion=suggestion) from exc


def _first_message(exc: pydantic.ValidationError) -> str:
    return str(exc.errors()[0]["msg"]).removeprefix("Value error, ")


def is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, Sized):
        return len(value) == 0
    return False


def dump(value: pydantic.BaseModel | Iterable[pydantic.BaseModel]) -> Any:
    """Serialise models to their camelCase JSON form."""
    if isinstance(value, pydantic.BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return [item.model_dump(mode="json", by_alias=True) for item in value]


async def cached(
    state: AppState,
    key: str,
    ttl: float | Callable[[Any], float],
    producer: Callable[[], Awaitable[T]],
    *,
    empty: Callable[[Any], bool] = is_empty,
) -> T:
    """Return the cached value for ``key`` or produce, store and return it.

    ``ttl`` may depend on the produced value (e.g. finished series live longer).
    Empty results are returned but never stored.
    """
    hit = state.cache.get(key)
    if hit is not None:
        log.debug("cache_hit", key=key)
        return hit

    log.debug("cache_miss", key=key)
    value = await producer()
    if not empty(value):
        seconds = ttl(value) if callable(ttl) else ttl
        state.cache.set(key, value, seconds)
    return value


async def first_available(
    operation: str,
    attempts: Sequence[Attempt],
    *,
    empty: Callable[[Any], bool] = is_empty,
) -> Any:
    """Try ``attempts`` in order; the first non-empty result wins.

    If every attempt succeeded empty, the last empty result is returned. If
    none succeeded at all, the last error is raised.
    """
    last_error: KitsuneError | None = None
    empty_result: Any = None
    any_succeeded = False

    for source, call in attempts:
        log.debug("fallback_attempt", operation=operation, source=source)
        try:
            result = await call()
        except KitsuneError as exc:
            log.warning(
                "source_failed",
                operation=operation,
                source=source,
                code=exc.code,
                message=exc.message,
            )
            last_error = exc
            continue

        if not empty(result):
            if source != attempts[0][0]:
                log.info("fallback_used", operation=operation, source=source)
            return result
        any_succeeded = True
        empty_result = result

    if any_succeeded:
        return empty_result
    if last_error is not None:
        raise last_error
    raise UpstreamError(
        f"No source is configured for {operation}",
        suggestion="Check catalog.primary and the render proxy settings.",
    )


def scraping_sources(state: AppState) -> list[OtakudesuSource]:
    """Otakudesu sources in the order they should be tried: direct, then rendered."""
    sources = [state.otakudesu]
    if state.otakudesu_rendered is not None:
        sources.append(state.otakudesu_rendered)
    return sources


def scraping_chain(
    state: AppState, call: Callable[[OtakudesuSource], Awaitable[Any]]
) -> list[Attempt]:
    return [(source.name, partial(call, source)) for source in scraping_sources(state)]


def catalog_chain(
    state: AppState,
    scrape: Callable[[OtakudesuSource], Awaitable[Any]],
    jikan: Callable[[], Awaitable[Any]],
    *,
    scraped_first: bool | None = None,
) -> list[Attempt]:
    """Chain covering both namespaces, ordered by ``catalog.primary``.

    ``scraped_first`` overrides the configured primary for operations whose
    direct source is always preferred.
    """
    catalog = state.settings.catalog
    scraped = scraping_chain(state, scrape)
    if scraped_first is None:
        scraped_first = catalog.primary == "otakudesu"

    if not scraped_first:
        return [(state.jikan.name, jikan), *scraped]
    if catalog.jikan_fallback:
        return [*scraped, (state.jikan.name, jikan)]
    return scraped
