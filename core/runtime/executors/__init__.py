"""Per-type action executors."""

from __future__ import annotations

from dataclasses import dataclass

from config.schema import BuildConfig, HistoryConfig
from sandbox.base import SandboxHandle

from ..alerts import AlertEmitter
from ..history import FileHistoryStore
from .base import ActionExecutor, ExecutionContext, ExecutorRegistry
from .build import BuildExecutor
from .external import ExternalServiceExecutor
from .file import FileExecutor
from .shell import ShellExecutor, ShellProvider, StartExecutor


@dataclass
class DefaultExecutors:
    registry: ExecutorRegistry
    files: FileExecutor
    history: FileHistoryStore


def build_default_executors(
    sandbox: SandboxHandle,
    shell_provider: ShellProvider,
    alerts: AlertEmitter,
    session_id: str,
    history_config: HistoryConfig | None = None,
    build_config: BuildConfig | None = None,
) -> DefaultExecutors:
    """Wire the standard executors around one shared file executor and history store."""
    files = FileExecutor(sandbox)
    # History documents go through the same patch-or-overwrite path as action writes.
    history = FileHistoryStore(sandbox, history_config, writer=files.write)
    files.history = history

    registry = ExecutorRegistry(
        [
            files,
            ShellExecutor(shell_provider, session_id),
            StartExecutor(shell_provider, session_id),
            BuildExecutor(sandbox, alerts, build_config),
            ExternalServiceExecutor(files, alerts),
        ]
    )
    return DefaultExecutors(registry=registry, files=files, history=history)


__all__ = [
    "ActionExecutor",
    "BuildExecutor",
    "DefaultExecutors",
    "ExecutionContext",
    "ExecutorRegistry",
    "ExternalServiceExecutor",
    "FileExecutor",
    "ShellExecutor",
    "ShellProvider",
    "StartExecutor",
    "build_default_executors",
]
