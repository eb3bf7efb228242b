"""LocalSandbox — workspace directory on the host with a bash-backed shell."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Callable
from pathlib import Path

from sandbox.base import Sandbox
from sandbox.interfaces.filesystem import VirtualFileSystem
from sandbox.interfaces.shell import InteractiveShell, ShellResult, SpawnedProcess
from sandbox.shell_output import normalize_shell_output

logger = logging.getLogger(__name__)


class LocalFileSystem(VirtualFileSystem):
    """Filesystem that operates directly on the local workspace directory."""

    def __init__(self, sandbox: LocalSandbox):
        self._sandbox = sandbox

    def _path(self, path: str) -> Path:
        return Path(self._sandbox.resolve(path))

    async def read_file(self, path: str) -> str:
        p = self._path(path)
        return await asyncio.to_thread(p.read_text, encoding="utf-8")

    async def write_file(self, path: str, content: str) -> None:
        p = self._path(path)
        await asyncio.to_thread(p.write_text, content, encoding="utf-8")

    async def mkdir(self, path: str, recursive: bool = False) -> None:
        p = self._path(path)
        await asyncio.to_thread(p.mkdir, parents=recursive, exist_ok=recursive)

    async def readdir(self, path: str) -> list[str]:
        p = self._path(path)

        def _list() -> list[str]:
            return sorted(item.name for item in p.iterdir())

        return await asyncio.to_thread(_list)


class LocalProcess(SpawnedProcess):
    def __init__(self, proc: asyncio.subprocess.Process):
        self._proc = proc

    async def output(self) -> AsyncIterator[str]:
        stream = self._proc.stdout
        if stream is None:
            return
        while True:
            chunk = await stream.read(4096)
            if not chunk:
                break
            yield chunk.decode("utf-8", errors="replace")

    async def wait(self) -> int:
        return await self._proc.wait()

    def kill(self) -> None:
        if self._proc.returncode is None:
            self._proc.kill()


class LocalShell(InteractiveShell):
    """One bash subprocess per command, run in the sandbox workdir.

    A new command interrupts the running one, mirroring a terminal where the
    user hits Ctrl-C before typing the next command.
    """

    shell_command = ("/bin/bash",)

    def __init__(self, workdir: str, env: dict[str, str] | None = None, terminate_timeout: float = 5.0):
        self.workdir = workdir
        self._env = env
        self._terminate_timeout = terminate_timeout
        self._current: asyncio.subprocess.Process | None = None
        self._current_abort: Callable[[], None] | None = None
        self._ready = asyncio.Event()

    async def ready(self) -> None:
        if not self._ready.is_set():
            await asyncio.to_thread(Path(self.workdir).mkdir, parents=True, exist_ok=True)
            self._ready.set()
        await self._ready.wait()

    async def execute_command(
        self,
        session_id: str,
        command: str,
        on_abort_requested: Callable[[], None] | None = None,
    ) -> ShellResult | None:
        await self._interrupt_current()

        merged_env = os.environ.copy()
        if self._env:
            merged_env.update(self._env)

        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=self.workdir,
            env=merged_env,
            executable=self.shell_command[0],
        )
        self._current = proc
        self._current_abort = on_abort_requested
        logger.debug("[%s] started: %s (pid=%s)", session_id, command, proc.pid)

        try:
            stdout, _ = await proc.communicate()
        except asyncio.CancelledError:
            await self._terminate(proc)
            raise
        finally:
            if self._current is proc:
                self._current = None
                self._current_abort = None

        output = normalize_shell_output(stdout.decode("utf-8", errors="replace"))
        return ShellResult(exit_code=proc.returncode or 0, output=output)

    async def _interrupt_current(self) -> None:
        proc, abort = self._current, self._current_abort
        if proc is None or proc.returncode is not None:
            return
        if abort is not None:
            abort()
        await self._terminate(proc)

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        proc.terminate()
        try:
            await asyncio.wait_for(proc.wait(), timeout=self._terminate_timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()


class LocalSandbox(Sandbox):
    def __init__(self, workspace_root: str, env: dict[str, str] | None = None) -> None:
        self._workspace_root = str(Path(workspace_root).resolve())
        self._env = env
        self._fs = LocalFileSystem(self)
        self._shell: LocalShell | None = None

    @property
    def name(self) -> str:
        return "local"

    @property
    def workdir(self) -> str:
        return self._workspace_root

    @property
    def fs(self) -> LocalFileSystem:
        return self._fs

    def shell(self) -> LocalShell:
        """Interactive shell attached to this workspace (created on first use)."""
        if self._shell is None:
            self._shell = LocalShell(self._workspace_root, env=self._env)
        return self._shell

    async def spawn(self, command: str, args: list[str], cwd: str | None = None) -> LocalProcess:
        merged_env = os.environ.copy()
        if self._env:
            merged_env.update(self._env)
        proc = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=self.resolve(cwd) if cwd else self._workspace_root,
            env=merged_env,
        )
        return LocalProcess(proc)
