"""Workbench — routes parsed actions to one ActionRunner per artifact.

An artifact is the group of actions emitted by one assistant message. The
workbench owns the shared sandbox, funnels registration and final runs
through its own queue, throttles streaming file updates, and keeps the
latest alert of each kind for the UI to pick up.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from config.schema import RuntimeSettings
from sandbox.base import SandboxHandle, SandboxSource

from .alerts import ActionAlert, DeployAlert, ExternalServiceAlert
from .errors import UnreachableError
from .executors import ShellProvider
from .runner import ActionRunner
from .sampler import Sampler
from .serializer import ExecutionSerializer
from .types import ActionCallbackData, ActionType, FileAction

logger = logging.getLogger(__name__)

AlertKind = Literal["action", "external", "deploy"]


@dataclass
class Artifact:
    id: str
    title: str
    message_id: str
    runner: ActionRunner


class Workbench:
    def __init__(
        self,
        sandbox: SandboxSource | SandboxHandle,
        shell_provider: ShellProvider,
        settings: RuntimeSettings | None = None,
    ):
        self.settings = settings or RuntimeSettings()
        self._sandbox = sandbox if isinstance(sandbox, SandboxHandle) else SandboxHandle(sandbox)
        self._shell_provider = shell_provider

        self.artifacts: dict[str, Artifact] = {}
        self.reloaded_messages: set[str] = set()
        self.documents: dict[str, str] = {}
        self._modified: set[str] = set()

        self.action_alert: ActionAlert | None = None
        self.external_alert: ExternalServiceAlert | None = None
        self.deploy_alert: DeployAlert | None = None

        self._queue = ExecutionSerializer(name="workbench")
        self._stream_sampler = Sampler(self._run_action, self.settings.streaming.sample_interval_seconds)

    # ========== Artifacts ==========

    def add_artifact(self, artifact_id: str, title: str = "", message_id: str | None = None) -> Artifact:
        existing = self.artifacts.get(artifact_id)
        if existing is not None:
            return existing

        message_id = message_id or artifact_id
        runner = ActionRunner(
            self._sandbox,
            self._shell_provider,
            on_alert=self._route_alert("action", message_id),
            on_external_alert=self._route_alert("external", message_id),
            on_deploy_alert=self._route_alert("deploy", message_id),
            settings=self.settings,
        )
        artifact = Artifact(id=artifact_id, title=title, message_id=message_id, runner=runner)
        self.artifacts[artifact_id] = artifact
        return artifact

    def set_reloaded_messages(self, message_ids: list[str] | set[str]) -> None:
        """Messages replayed from chat history: their actions must not re-alert."""
        self.reloaded_messages = set(message_ids)

    def _route_alert(self, kind: AlertKind, message_id: str) -> Callable[[Any], None]:
        def route(alert: Any) -> None:
            if message_id in self.reloaded_messages:
                return
            setattr(self, f"{kind}_alert", alert)

        return route

    def clear_alert(self, kind: AlertKind) -> None:
        setattr(self, f"{kind}_alert", None)

    def _get_artifact(self, data: ActionCallbackData) -> Artifact:
        key = data.artifact_id or data.message_id
        artifact = self.artifacts.get(key)
        if artifact is None:
            raise UnreachableError(f"Artifact not found: {key}")
        return artifact

    # ========== Actions ==========

    def add_action(self, data: ActionCallbackData) -> asyncio.Future:
        return self._queue.submit(lambda: self._add_action(data))

    async def _add_action(self, data: ActionCallbackData) -> None:
        self._get_artifact(data).runner.add_action(data)

    def run_action(self, data: ActionCallbackData, is_streaming: bool = False) -> asyncio.Future | None:
        if is_streaming:
            self._stream_sampler(data, True)
            return None
        return self._queue.submit(lambda: self._run_action(data, False))

    async def _run_action(self, data: ActionCallbackData, is_streaming: bool = False) -> None:
        artifact = self._get_artifact(data)
        state = artifact.runner.get_action(data.action_id)
        if state is None or state.executed:
            return

        if data.action.type != ActionType.FILE:
            await artifact.runner.run_action(data)
            return

        action: FileAction = data.action
        sandbox = await self._sandbox.get()
        full_path = sandbox.resolve(action.file_path)
        self.documents[full_path] = action.content

        await artifact.runner.run_action(data, is_streaming)
        if is_streaming:
            self._modified.add(full_path)
        else:
            self._modified.discard(full_path)

    # ========== Documents ==========

    def modified_files(self) -> list[str]:
        """Paths whose live document holds streamed content that is not final yet."""
        return sorted(self._modified)

    def reset_modifications(self) -> None:
        self._modified.clear()

    # ========== Lifecycle ==========

    async def drain(self) -> None:
        await self._stream_sampler.drain()
        await self._queue.join()
        for artifact in list(self.artifacts.values()):
            await artifact.runner.join()

    async def aclose(self) -> None:
        self._stream_sampler.cancel()
        await self._queue.aclose()
        for artifact in list(self.artifacts.values()):
            await artifact.runner.aclose()
