"""Shell and start actions, both run through the interactive shell."""

from __future__ import annotations

import logging
from collections.abc import Callable

from sandbox.interfaces.shell import InteractiveShell, ShellResult

from ..errors import ActionCommandError, UnreachableError
from ..types import ActionType, ShellAction, StartAction
from .base import ActionExecutor, ExecutionContext

logger = logging.getLogger(__name__)

ShellProvider = Callable[[], InteractiveShell | None]


class ShellExecutor(ActionExecutor):
    action_type = ActionType.SHELL
    alert_title = "Shell Command Failed"
    failure_header = "Failed To Execute Shell Command"
    action_class: type = ShellAction

    def __init__(self, shell_provider: ShellProvider, session_id: str):
        self._shell_provider = shell_provider
        self.session_id = session_id

    async def execute(self, ctx: ExecutionContext) -> ShellResult:
        action = self._expect(ctx, self.action_class)

        shell = self._shell_provider()
        if shell is None:
            raise UnreachableError("Shell terminal not found")
        await ctx.abort_signal.guard(shell.ready())

        def on_abort_requested() -> None:
            logger.debug("[%s] Aborting action %s", action.type, ctx.action_id)
            ctx.abort()

        resp = await ctx.abort_signal.guard(
            shell.execute_command(self.session_id, action.content, on_abort_requested)
        )
        logger.debug("%s Shell Response: [exit code:%s]", action.type, resp.exit_code if resp else None)

        if resp is None or resp.exit_code != 0:
            output = resp.output if resp is not None else ""
            raise ActionCommandError(self.failure_header, output or "No Output Available")
        return resp


class StartExecutor(ShellExecutor):
    """Long-running process (dev server). Launched detached by the runner."""

    action_type = ActionType.START
    detached = True
    alert_title = "Dev Server Failed"
    failure_header = "Failed To Start Application"
    action_class = StartAction
