"""ActionRunner — executes parsed actions against the sandbox.

Lifecycle of one action:

    add_action   -> pending (abort handle allocated)
    chain reaches the registration point -> running
    run_action   -> queued on the serializer -> executor -> complete | aborted | failed

Only file actions accept streaming runs: their content is applied on every
partial update, but history is recorded only for the final one. All other
types run once, on the final (non-streaming) call.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from config.schema import RuntimeSettings
from sandbox.base import SandboxHandle, SandboxSource

from .abort import AbortController
from .alerts import (
    ActionAlert,
    AlertEmitter,
    DeployAlert,
    DeployDetails,
    DeployStage,
    ExternalServiceAlert,
    build_deploy_alert,
)
from .errors import ActionCommandError, UnreachableError
from .executors import ActionExecutor, ExecutionContext, ExecutorRegistry, ShellProvider, build_default_executors
from .history import FileHistory
from .serializer import ExecutionSerializer
from .state import ActionState, ActionStateTable, StateListener
from .supervisor import StartSupervisor
from .types import ActionCallbackData, ActionStatus, ActionType, BuildOutput, ChangeSource

logger = logging.getLogger(__name__)


class ActionRunner:
    def __init__(
        self,
        sandbox: SandboxSource | SandboxHandle,
        shell_provider: ShellProvider,
        on_alert: Callable[[ActionAlert], None] | None = None,
        on_external_alert: Callable[[ExternalServiceAlert], None] | None = None,
        on_deploy_alert: Callable[[DeployAlert], None] | None = None,
        settings: RuntimeSettings | None = None,
        registry: ExecutorRegistry | None = None,
    ):
        self.settings = settings or RuntimeSettings()
        self._sandbox = sandbox if isinstance(sandbox, SandboxHandle) else SandboxHandle(sandbox)
        self.runner_id = self.settings.runner_id or f"{int(time.time() * 1000)}"
        self.alerts = AlertEmitter(on_alert, on_external_alert, on_deploy_alert)

        defaults = build_default_executors(
            self._sandbox,
            shell_provider,
            self.alerts,
            session_id=self.runner_id,
            history_config=self.settings.history,
            build_config=self.settings.build,
        )
        self.history = defaults.history
        self.registry = registry or defaults.registry

        self._table = ActionStateTable()
        self._serializer = ExecutionSerializer(name=f"runner:{self.runner_id}")
        self._supervisor = StartSupervisor()
        self.build_output: BuildOutput | None = None

    # ========== State access ==========

    @property
    def actions(self) -> dict[str, ActionState]:
        return self._table.snapshot()

    def get_action(self, action_id: str) -> ActionState | None:
        return self._table.get(action_id)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._table.subscribe(listener)

    @property
    def supervisor(self) -> StartSupervisor:
        return self._supervisor

    # ========== Registration / execution ==========

    def add_action(self, data: ActionCallbackData) -> None:
        """Register an action as pending. Re-registering a known id is a no-op."""
        action_id = data.action_id
        if action_id in self._table:
            return

        controller = AbortController()

        def abort() -> None:
            controller.abort()
            self._table.update(action_id, status=ActionStatus.ABORTED)

        inserted = self._table.insert_if_absent(
            action_id,
            ActionState(action=data.action, abort=abort, abort_signal=controller.signal),
        )
        if inserted:
            self._serializer.mark(lambda: self._mark_running(action_id))

    def _mark_running(self, action_id: str) -> None:
        state = self._table.get(action_id)
        if state is not None and state.status == ActionStatus.PENDING:
            self._table.update(action_id, status=ActionStatus.RUNNING)

    async def run_action(self, data: ActionCallbackData, is_streaming: bool = False) -> None:
        action_id = data.action_id
        state = self._table.get(action_id)
        if state is None:
            raise UnreachableError(f"Action {action_id} not found")

        if state.executed:
            return
        if is_streaming and state.action.type != ActionType.FILE:
            return

        self._table.update(action_id, action=data.action, executed=not is_streaming)
        await self._serializer.run(lambda: self._execute_action(action_id, is_streaming))

    def abort(self, action_id: str) -> None:
        state = self._table.get(action_id)
        if state is None:
            raise UnreachableError(f"Action {action_id} not found")
        state.abort()

    async def _execute_action(self, action_id: str, is_streaming: bool = False) -> None:
        state = self._table.get(action_id)
        if state is None:
            raise UnreachableError(f"Action {action_id} not found")
        if state.abort_signal.aborted:
            logger.debug("[%s] Skipping aborted action %s", state.type, action_id)
            return

        self._table.update(action_id, status=ActionStatus.RUNNING)

        try:
            executor = self.registry.get(state.action.type)
        except UnreachableError as e:
            self._table.update(action_id, status=ActionStatus.FAILED, error=str(e))
            raise

        ctx = ExecutionContext(
            action_id=action_id,
            action=state.action,
            abort_signal=state.abort_signal,
            abort=state.abort,
            is_streaming=is_streaming,
        )

        try:
            if executor.detached:
                self._supervisor.launch(action_id, self._run_detached(executor, ctx))
                # Keep two start actions from racing for the same port.
                await asyncio.sleep(self.settings.start.settle_delay_seconds)
                return

            result = await executor.execute(ctx)
            if isinstance(result, BuildOutput):
                self.build_output = result

            if is_streaming:
                status = ActionStatus.RUNNING
            elif ctx.abort_signal.aborted:
                status = ActionStatus.ABORTED
            else:
                status = ActionStatus.COMPLETE
            self._table.update(action_id, status=status)
        except Exception as error:
            if ctx.abort_signal.aborted:
                return

            self._fail(executor, ctx, error)
            if isinstance(error, ActionCommandError):
                # Surfaces at the serializer boundary, which logs and moves on.
                raise

    async def _run_detached(self, executor: ActionExecutor, ctx: ExecutionContext) -> None:
        try:
            await executor.execute(ctx)
        except Exception as error:
            if ctx.abort_signal.aborted:
                return
            self._fail(executor, ctx, error)
            return

        if not ctx.abort_signal.aborted:
            self._table.update(ctx.action_id, status=ActionStatus.COMPLETE)

    def _fail(self, executor: ActionExecutor, ctx: ExecutionContext, error: Exception) -> None:
        message = error.header if isinstance(error, ActionCommandError) else (str(error) or "Action failed")
        self._table.update(ctx.action_id, status=ActionStatus.FAILED, error=message)
        logger.error("[%s]:Action failed\n\n%s", ctx.action.type, error)

        if isinstance(error, ActionCommandError):
            self.alerts.action(
                ActionAlert(
                    type="error",
                    title=executor.alert_title,
                    description=error.header,
                    content=error.output,
                )
            )

    # ========== File history ==========

    async def get_file_history(self, file_path: str) -> FileHistory | None:
        return await self.history.get(file_path)

    async def save_file_history(self, file_path: str, history: FileHistory) -> None:
        try:
            await self.history.save(file_path, history)
        except OSError as e:
            logger.error("Failed to save file history for %s: %s", file_path, e)

    async def track_file_change(
        self,
        file_path: str,
        content: str,
        change_source: ChangeSource | str = ChangeSource.EXTERNAL,
    ) -> FileHistory | None:
        return await self.history.track(file_path, content, ChangeSource(change_source))

    # ========== Deployment alerts ==========

    def handle_deploy_action(
        self,
        stage: DeployStage | str,
        status: ActionStatus | str,
        details: DeployDetails | dict[str, Any] | None = None,
    ) -> None:
        """Report a deployment stage from outside the action flow (e.g. after a hosting push)."""
        if self.alerts.on_deploy_alert is None:
            logger.debug("No deploy alert handler registered")
            return
        if isinstance(details, dict):
            details = DeployDetails(**details)
        self.alerts.deploy(build_deploy_alert(stage, status, details))

    # ========== Shutdown ==========

    async def join(self) -> None:
        await self._serializer.join()

    async def aclose(self) -> None:
        await self._supervisor.shutdown()
        await self._serializer.aclose()
