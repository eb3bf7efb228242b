"""Action state table — single source of truth for action status.

Records are immutable snapshots; ``update`` is the only mutation path and
replaces the stored snapshot with a shallow merge under the table lock, so
observers always read a consistent record.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .abort import AbortSignal
from .types import Action, ActionStatus

logger = logging.getLogger(__name__)

StateListener = Callable[[str, "ActionState"], None]


@dataclass(frozen=True, slots=True)
class ActionState:
    action: Action
    abort: Callable[[], None]
    abort_signal: AbortSignal
    status: ActionStatus = ActionStatus.PENDING
    executed: bool = False
    error: str | None = None

    @property
    def type(self) -> str:
        return self.action.type


class ActionStateTable:
    def __init__(self) -> None:
        self._states: dict[str, ActionState] = {}
        self._listeners: list[StateListener] = []
        self._lock = threading.Lock()

    def __contains__(self, action_id: str) -> bool:
        with self._lock:
            return action_id in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def get(self, action_id: str) -> ActionState | None:
        with self._lock:
            return self._states.get(action_id)

    def snapshot(self) -> dict[str, ActionState]:
        with self._lock:
            return dict(self._states)

    def insert_if_absent(self, action_id: str, state: ActionState) -> bool:
        """Store ``state`` unless ``action_id`` is already known. Returns True if inserted."""
        with self._lock:
            if action_id in self._states:
                return False
            self._states[action_id] = state
        self._notify(action_id, state)
        return True

    def update(self, action_id: str, **changes: Any) -> ActionState:
        with self._lock:
            current = self._states.get(action_id)
            if current is None:
                raise KeyError(action_id)
            if changes.get("status") not in (None, ActionStatus.FAILED) and "error" not in changes:
                changes["error"] = None
            updated = dataclasses.replace(current, **changes)
            self._states[action_id] = updated
        self._notify(action_id, updated)
        return updated

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register an observer called after every insert/update. Returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, action_id: str, state: ActionState) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(action_id, state)
            except Exception:
                logger.exception("Action state listener failed for %s", action_id)
