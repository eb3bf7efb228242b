"""File action: write content into the sandbox, patching existing files."""

from __future__ import annotations

import logging
import posixpath
from typing import TYPE_CHECKING

from sandbox.base import SandboxHandle

from ..errors import PatchApplyError
from ..patching import apply_patch, create_two_files_patch
from ..types import ActionType, FileAction
from .base import ActionExecutor, ExecutionContext

if TYPE_CHECKING:
    from ..history import FileHistoryStore

logger = logging.getLogger(__name__)


class FileExecutor(ActionExecutor):
    action_type = ActionType.FILE
    alert_title = "File Write Failed"

    def __init__(self, sandbox: SandboxHandle, history: FileHistoryStore | None = None):
        self._sandbox = sandbox
        self.history = history

    async def execute(self, ctx: ExecutionContext) -> None:
        action: FileAction = self._expect(ctx, FileAction)
        await self.write(action.file_path, action.content)

        # Streaming updates keep the file live; only the final one becomes a version.
        if not ctx.is_streaming and self.history is not None:
            await self.history.track(action.file_path, action.content, action.change_source)

    async def write(self, file_path: str, content: str) -> None:
        """Write ``content`` to ``file_path``, via a patch when the file already has content."""
        sandbox = await self._sandbox.get()
        relative = sandbox.relative(file_path)

        folder = posixpath.dirname(relative).rstrip("/")
        if folder:
            try:
                await sandbox.fs.mkdir(folder, recursive=True)
                logger.debug("Created folder %s", folder)
            except OSError as e:
                logger.error("Failed to create folder %s: %s", folder, e)

        try:
            original: str | None = await sandbox.fs.read_file(relative)
        except FileNotFoundError:
            logger.debug("File doesn't exist yet: %s", relative)
            original = None

        if not original:
            await sandbox.fs.write_file(relative, content)
            logger.debug("New file written: %s", relative)
            return

        if original == content:
            logger.debug("No changes needed for %s", relative)
            return

        try:
            patch = create_two_files_patch(relative, relative, original, content)
            patched = apply_patch(original, patch)
        except PatchApplyError as e:
            logger.warning("Failed to apply patch to %s, overwriting: %s", relative, e)
            patched = content

        if patched != content:
            logger.warning("Patched content of %s diverged from target, overwriting", relative)
            patched = content

        await sandbox.fs.write_file(relative, patched)
        logger.debug("Patched file written: %s", relative)
