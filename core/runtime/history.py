"""Per-file version history persisted inside the sandbox.

Each tracked path gets one JSON document under the reserved history
directory, mirroring the path relative to the workspace root:

    /home/project/src/App.tsx  ->  .history/src/App.tsx.json
"""

from __future__ import annotations

import logging
import posixpath
import time
from collections.abc import Awaitable, Callable

from pydantic import BaseModel, Field, ValidationError

from config.schema import HistoryConfig
from sandbox.base import SandboxHandle

from .patching import ChangeBlock, diff_lines
from .types import ChangeSource

logger = logging.getLogger(__name__)

HistoryWriter = Callable[[str, str], Awaitable[None]]


class FileVersion(BaseModel):
    timestamp: int
    content: str


class FileHistory(BaseModel):
    original_content: str
    last_modified: int
    versions: list[FileVersion] = Field(default_factory=list)
    changes: list[ChangeBlock] = Field(default_factory=list)
    change_source: ChangeSource = ChangeSource.AUTO_SAVE

    @property
    def latest_content(self) -> str:
        return self.versions[-1].content if self.versions else self.original_content


def _now_ms() -> int:
    return int(time.time() * 1000)


class FileHistoryStore:
    def __init__(
        self,
        sandbox: SandboxHandle,
        config: HistoryConfig | None = None,
        writer: HistoryWriter | None = None,
    ):
        self._sandbox = sandbox
        self.config = config or HistoryConfig()
        self._writer = writer

    def history_path(self, file_path: str, workdir: str | None = None) -> str:
        prefixes = list(self.config.workspace_prefixes)
        if workdir:
            prefixes.append(workdir.rstrip("/") + "/")
        normalized = file_path
        for prefix in prefixes:
            if normalized.startswith(prefix):
                normalized = normalized[len(prefix) :]
                break
        normalized = posixpath.normpath(normalized.lstrip("/"))
        return posixpath.join(self.config.directory, f"{normalized}.json")

    async def get(self, file_path: str) -> FileHistory | None:
        sandbox = await self._sandbox.get()
        history_path = self.history_path(file_path, sandbox.workdir)
        try:
            raw = await sandbox.fs.read_file(history_path)
        except FileNotFoundError:
            logger.debug("History file doesn't exist yet: %s", history_path)
            return None
        try:
            return FileHistory.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Corrupt history file %s: %s", history_path, e)
            return None

    async def save(self, file_path: str, history: FileHistory) -> None:
        sandbox = await self._sandbox.get()
        history_path = self.history_path(file_path, sandbox.workdir)
        await sandbox.fs.mkdir(posixpath.dirname(history_path), recursive=True)

        payload = history.model_dump_json()
        if self._writer is not None:
            await self._writer(history_path, payload)
        else:
            await sandbox.fs.write_file(history_path, payload)
        logger.debug("File history saved: %s", history_path)

    async def track(
        self,
        file_path: str,
        content: str,
        source: ChangeSource = ChangeSource.EXTERNAL,
    ) -> FileHistory | None:
        """Record ``content`` as the newest version of ``file_path``.

        Writes the file itself if it is missing or differs on disk. Content
        identical to the last recorded version appends nothing.
        """
        try:
            return await self._track(file_path, content, ChangeSource(source))
        except (OSError, ValidationError) as e:
            logger.error("Failed to track file change for %s: %s", file_path, e)
            return None

    async def _track(self, file_path: str, content: str, source: ChangeSource) -> FileHistory:
        sandbox = await self._sandbox.get()
        relative = sandbox.relative(file_path)

        try:
            current: str | None = await sandbox.fs.read_file(relative)
        except FileNotFoundError:
            current = None
            folder = posixpath.dirname(relative)
            if folder:
                await sandbox.fs.mkdir(folder, recursive=True)

        history = await self.get(file_path)
        changed = True
        if history is None:
            timestamp = _now_ms()
            history = FileHistory(
                original_content=content,
                last_modified=timestamp,
                versions=[FileVersion(timestamp=timestamp, content=content)],
                change_source=source,
            )
        elif history.versions and history.versions[-1].content == content:
            changed = False
        else:
            # Versions stay time-ordered even if the clock steps backwards.
            timestamp = max(_now_ms(), history.last_modified)
            history.versions.append(FileVersion(timestamp=timestamp, content=content))
            history.versions = history.versions[-self.config.max_versions :]
            history.last_modified = timestamp
            history.change_source = source
            history.changes = diff_lines(history.original_content, content)

        if current != content:
            await sandbox.fs.write_file(relative, content)
            logger.debug("File written while tracking: %s", relative)

        if changed:
            await self.save(file_path, history)
        return history
