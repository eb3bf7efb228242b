"""Throttle for streaming updates: at most one call per interval, latest args win."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class Sampler:
    """Leading-edge call, then one trailing call per interval with the most recent arguments."""

    def __init__(self, fn: Callable[..., Awaitable[Any]], interval: float):
        self._fn = fn
        self.interval = interval
        self._last_time: float | None = None
        self._last_args: tuple[Any, ...] | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()

    def __call__(self, *args: Any) -> None:
        loop = asyncio.get_running_loop()
        now = time.monotonic()
        self._last_args = args

        if self._last_time is None or now - self._last_time >= self.interval:
            self._last_time = now
            self._last_args = None
            self._spawn(loop, args)
        elif self._timer is None:
            delay = self.interval - (now - self._last_time)
            self._timer = loop.call_later(delay, self._fire_trailing, loop)

    def _fire_trailing(self, loop: asyncio.AbstractEventLoop) -> None:
        self._timer = None
        self._last_time = time.monotonic()
        if self._last_args is not None:
            args, self._last_args = self._last_args, None
            self._spawn(loop, args)

    def _spawn(self, loop: asyncio.AbstractEventLoop, args: tuple[Any, ...]) -> None:
        task = loop.create_task(self._fn(*args))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error("Sampled call failed: %s", exc)

    @property
    def pending(self) -> bool:
        return self._timer is not None or bool(self._tasks)

    async def drain(self) -> None:
        """Wait for the trailing call (if scheduled) and every in-flight call."""
        while self.pending:
            if self._timer is not None:
                await asyncio.sleep(max(self._timer.when() - asyncio.get_running_loop().time(), 0))
                continue
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._last_args = None
        for task in list(self._tasks):
            task.cancel()
