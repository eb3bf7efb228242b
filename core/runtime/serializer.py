"""Execution serializer — one queue, one worker, strict FIFO.

Every submitted job runs to completion before the next one starts. A job
that raises is logged and does not stall the queue; its caller's future
still resolves (to None), matching "errors are recorded on the action,
not on the chain". A job runs even when the caller that submitted it has
stopped waiting.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[Any]]

_STOP = object()


class ExecutionSerializer:
    def __init__(self, name: str = "actions"):
        self.name = name
        self._queue: asyncio.Queue | None = None
        self._worker: asyncio.Task | None = None
        self._closed = False

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    def _ensure_worker(self) -> asyncio.Queue:
        if self._closed:
            raise RuntimeError(f"Serializer {self.name!r} is closed")
        loop = asyncio.get_running_loop()
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain(self._queue), name=f"serializer:{self.name}")
        return self._queue

    def submit(self, job: Job) -> asyncio.Future:
        """Append ``job`` to the chain. The returned future resolves when it has run."""
        queue = self._ensure_worker()
        future = asyncio.get_running_loop().create_future()
        queue.put_nowait((job, future))
        return future

    async def run(self, job: Job) -> Any:
        """Submit ``job`` and wait for it (and everything queued before it).

        Cancelling the caller stops the wait only; the job stays queued.
        """
        return await asyncio.shield(self.submit(job))

    def mark(self, callback: Callable[[], None]) -> None:
        """Run a synchronous ``callback`` once the chain reaches this point.

        Outside an event loop there is no chain to wait on; the callback is dropped.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return

        async def _marker() -> None:
            callback()

        self.submit(_marker)

    async def _drain(self, queue: asyncio.Queue) -> None:
        while True:
            item = await queue.get()
            try:
                if item is _STOP:
                    return
                job, future = item
                try:
                    result = await job()
                except asyncio.CancelledError:
                    if not future.done():
                        future.cancel()
                    raise
                except Exception:
                    logger.exception("[%s] Action failed", self.name)
                    result = None
                if not future.done():
                    future.set_result(result)
            finally:
                queue.task_done()

    async def join(self) -> None:
        """Wait until everything submitted so far has run."""
        if self._queue is not None and self._worker is not None and not self._worker.done():
            await self._queue.join()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._queue is not None and self._worker is not None and not self._worker.done():
            self._queue.put_nowait(_STOP)
            await self._worker
