"""Supervisor for detached (start) actions: action id -> background task."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

logger = logging.getLogger(__name__)


class StartSupervisor:
    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task] = {}

    def launch(self, action_id: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        previous = self._tasks.get(action_id)
        if previous is not None and not previous.done():
            coro.close()
            raise RuntimeError(f"Detached action {action_id} is already running")

        task = asyncio.get_running_loop().create_task(coro, name=f"start:{action_id}")
        self._tasks[action_id] = task
        task.add_done_callback(lambda t, aid=action_id: self._on_done(aid, t))
        return task

    def _on_done(self, action_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(action_id) is task:
            del self._tasks[action_id]
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error("Detached action %s crashed: %s", action_id, exc)

    def get(self, action_id: str) -> asyncio.Task | None:
        return self._tasks.get(action_id)

    def running_ids(self) -> list[str]:
        return [aid for aid, task in self._tasks.items() if not task.done()]

    def cancel(self, action_id: str) -> bool:
        task = self._tasks.get(action_id)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def shutdown(self) -> None:
        tasks = [task for task in self._tasks.values() if not task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
