"""Build action: run the project build and locate its output directory."""

from __future__ import annotations

import logging
import posixpath

from config.schema import BuildConfig
from sandbox.base import SandboxHandle

from ..alerts import AlertEmitter, DeployAlert, DeployStage
from ..errors import ActionAbortedError, ActionCommandError
from ..types import ActionStatus, ActionType, BuildAction, BuildOutput
from .base import ActionExecutor, ExecutionContext

logger = logging.getLogger(__name__)


class BuildExecutor(ActionExecutor):
    action_type = ActionType.BUILD
    alert_title = "Build Failed"

    def __init__(self, sandbox: SandboxHandle, alerts: AlertEmitter, config: BuildConfig | None = None):
        self._sandbox = sandbox
        self._alerts = alerts
        self.config = config or BuildConfig()

    def command_for(self, action: BuildAction) -> list[str]:
        """A content override is a shell command line; otherwise the configured argv."""
        if action.content.strip():
            return ["sh", "-c", action.content]
        return list(self.config.command)

    async def execute(self, ctx: ExecutionContext) -> BuildOutput:
        action: BuildAction = self._expect(ctx, BuildAction)

        self._alerts.deploy(
            DeployAlert(
                type="info",
                title="Building Application",
                description="Building your application...",
                stage=DeployStage.BUILDING,
                build_status=ActionStatus.RUNNING,
                deploy_status=ActionStatus.PENDING,
            )
        )

        sandbox = await self._sandbox.get()
        argv = self.command_for(action)
        try:
            process = await sandbox.spawn(argv[0], argv[1:])
        except OSError as e:
            logger.warning("Failed to start build command %s: %s", argv[0], e)
            raise self._build_failed(str(e)) from e

        chunks: list[str] = []

        async def collect() -> int:
            async for chunk in process.output():
                chunks.append(chunk)
            return await process.wait()

        try:
            exit_code = await ctx.abort_signal.guard(collect())
        except ActionAbortedError:
            process.kill()
            raise
        output = "".join(chunks)

        if exit_code != 0:
            raise self._build_failed(output)

        build_dir = await self._find_build_dir(sandbox, action.output_dirs)

        self._alerts.deploy(
            DeployAlert(
                type="success",
                title="Build Completed",
                description="Your application was built successfully",
                stage=DeployStage.DEPLOYING,
                build_status=ActionStatus.COMPLETE,
                deploy_status=ActionStatus.RUNNING,
            )
        )
        return BuildOutput(path=build_dir, exit_code=exit_code, output=output)

    def _build_failed(self, output: str) -> ActionCommandError:
        self._alerts.deploy(
            DeployAlert(
                type="error",
                title="Build Failed",
                description="Your application build failed",
                content=output or "No build output available",
                stage=DeployStage.BUILDING,
                build_status=ActionStatus.FAILED,
                deploy_status=ActionStatus.PENDING,
            )
        )
        return ActionCommandError("Build Failed", output or "No Output Available")

    async def _find_build_dir(self, sandbox, hints: list[str] | None) -> str:
        candidates = list(dict.fromkeys([*(hints or []), *self.config.output_dirs]))
        for name in candidates:
            path = posixpath.join(sandbox.workdir, name)
            try:
                await sandbox.fs.readdir(path)
            except (FileNotFoundError, NotADirectoryError):
                logger.debug("Build directory %s not found, trying next option", name)
                continue
            logger.debug("Found build directory: %s", path)
            return path

        default = posixpath.join(sandbox.workdir, candidates[0])
        logger.debug("No build directory found, defaulting to: %s", default)
        return default
