"""Sandbox ABC — unified interface for execution environments.

A Sandbox bundles sub-capabilities by interaction surface:
- fs       → VirtualFileSystem  (file actions, history, build probing)
- spawn()  → SpawnedProcess     (build actions)
The interactive shell is supplied separately because it is attached to a
terminal that may be created after the sandbox itself.
"""

from __future__ import annotations

import asyncio
import inspect
import posixpath
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from sandbox.interfaces.filesystem import VirtualFileSystem
    from sandbox.interfaces.shell import SpawnedProcess


class Sandbox(ABC):
    """Abstract sandbox — one instance per workspace."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier: 'local', 'memory', ..."""
        ...

    @property
    @abstractmethod
    def workdir(self) -> str:
        """Absolute working directory inside this sandbox."""
        ...

    @property
    @abstractmethod
    def fs(self) -> VirtualFileSystem:
        ...

    @abstractmethod
    async def spawn(self, command: str, args: list[str], cwd: str | None = None) -> SpawnedProcess:
        """Start ``command`` with ``args`` in ``cwd`` (default: workdir)."""
        ...

    def resolve(self, path: str) -> str:
        """Absolute, normalised path inside the workdir.

        Raises:
            PermissionError: If the path escapes the workdir
        """
        workdir = posixpath.normpath(self.workdir)
        joined = posixpath.normpath(posixpath.join(workdir, path))
        if joined != workdir and not joined.startswith(workdir.rstrip("/") + "/"):
            raise PermissionError(f"Path escapes sandbox workdir: {path}")
        return joined

    def relative(self, path: str) -> str:
        """Workdir-relative form of ``path`` ('' for the workdir itself)."""
        rel = posixpath.relpath(self.resolve(path), posixpath.normpath(self.workdir))
        return "" if rel == "." else rel

    def close(self) -> None:
        """Clean up on exit. Default: no-op."""
        pass


SandboxSource = Union[Sandbox, Awaitable[Sandbox], Callable[[], Union[Sandbox, Awaitable[Sandbox]]]]


class SandboxHandle:
    """Lazily resolved sandbox.

    The sandbox may still be booting when the engine is built; the first
    ``get()`` awaits it and every later call returns the cached instance.
    """

    def __init__(self, source: SandboxSource):
        self._source = source
        self._sandbox: Sandbox | None = source if isinstance(source, Sandbox) else None
        self._lock: asyncio.Lock | None = None

    @property
    def resolved(self) -> Sandbox | None:
        return self._sandbox

    async def get(self) -> Sandbox:
        if self._sandbox is not None:
            return self._sandbox
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._sandbox is None:
                source = self._source
                if callable(source) and not inspect.isawaitable(source):
                    source = source()
                if inspect.isawaitable(source):
                    source = await source
                if not isinstance(source, Sandbox):
                    raise TypeError(f"Sandbox source resolved to {type(source).__name__}")
                self._sandbox = source
        return self._sandbox
