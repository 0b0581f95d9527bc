"""FIFO pacing queue for quota-bound upstreams.

A single worker coroutine drains an ``asyncio.Queue``: one task runs at a
time, in submission order, and at least ``min_interval`` seconds separate the
completion of one task from the start of the next. A task's exception is
delivered only to the caller awaiting it; the worker keeps draining.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import suppress
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from kitsuneid.errors import UpstreamError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = structlog.get_logger()

T = TypeVar("T")

_Job = tuple["Callable[[], Awaitable[Any]]", "asyncio.Future[Any]"]


class RateLimiter:
    def __init__(self, min_interval: float, *, name: str = "upstream") -> None:
        self.min_interval = min_interval
        self.name = name
        self._queue: asyncio.Queue[_Job] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._last_finished: float | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if not self.running:
            self._worker = asyncio.create_task(self._run(), name=f"ratelimit-{self.name}")

    async def enqueue(self, task: Callable[[], Awaitable[T]]) -> T:
        """Queue ``task`` and wait for its result (or its exception)."""
        self.start()
        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        await self._queue.put((task, future))
        # A caller that goes away does not withdraw its queued call.
        return await asyncio.shield(future)

    async def shutdown(self) -> None:
        """Stop the worker and fail every task that never got to run."""
        if self._worker is not None:
            self._worker.cancel()
            with suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            if not future.done():
                future.set_exception(UpstreamError(f"Rate limiter '{self.name}' shut down"))

    async def _run(self) -> None:
        while True:
            task, future = await self._queue.get()

            if self._last_finished is not None:
                wait = self.min_interval - (time.monotonic() - self._last_finished)
                if wait > 0:
                    await asyncio.sleep(wait)

            try:
                result = await task()
            except asyncio.CancelledError:
                if not future.done():
                    future.cancel()
                raise
            except Exception as exc:
                log.debug("ratelimit_task_failed", limiter=self.name, error=str(exc))
                if not future.done():
                    future.set_exception(exc)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._last_finished = time.monotonic()
