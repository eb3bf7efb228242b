"""Executor contract shared by every action type."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..abort import AbortSignal
from ..errors import UnreachableError
from ..types import Action, ActionType


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Everything an executor may look at for one run of one action."""

    action_id: str
    action: Action
    abort_signal: AbortSignal
    abort: Callable[[], None]
    is_streaming: bool = False


class ActionExecutor(ABC):
    """Strategy for one action type.

    ``detached`` executors are launched as background tasks; the serializer
    only waits for the settle delay, not for completion.
    """

    action_type: ActionType
    detached: bool = False
    alert_title: str = "Action Failed"

    @abstractmethod
    async def execute(self, ctx: ExecutionContext) -> Any:
        """Run the action's side effects. Raise to signal failure."""
        ...

    def _expect(self, ctx: ExecutionContext, expected: type) -> Any:
        if not isinstance(ctx.action, expected):
            raise UnreachableError(f"Expected {self.action_type} action, got {ctx.action.type}")
        return ctx.action


class ExecutorRegistry:
    def __init__(self, executors: list[ActionExecutor] | None = None):
        self._executors: dict[ActionType, ActionExecutor] = {}
        for executor in executors or []:
            self.register(executor)

    def register(self, executor: ActionExecutor) -> None:
        self._executors[ActionType(executor.action_type)] = executor

    def get(self, action_type: ActionType | str) -> ActionExecutor:
        try:
            return self._executors[ActionType(action_type)]
        except (KeyError, ValueError):
            raise UnreachableError(f"No executor registered for action type {action_type!r}") from None

    def __contains__(self, action_type: ActionType | str) -> bool:
        try:
            return ActionType(action_type) in self._executors
        except ValueError:
            return False
