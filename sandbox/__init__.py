"""Sandbox — infrastructure layer for execution environments.

Usage:
    from sandbox import create_sandbox

    sbx = create_sandbox("local", workspace_root="/home/project")
    runner = ActionRunner(sbx, shell_provider=sbx.shell)
"""

from __future__ import annotations

from pathlib import Path

from sandbox.base import Sandbox, SandboxHandle


def create_sandbox(provider: str = "local", workspace_root: str | None = None) -> Sandbox:
    """Factory: create a Sandbox by provider name.

    Args:
        provider: Provider name ("local")
        workspace_root: Working dir for LocalSandbox (default: cwd)
    """
    if provider == "local":
        from sandbox.local import LocalSandbox

        return LocalSandbox(workspace_root=workspace_root or str(Path.cwd()))

    raise ValueError(f"Unknown sandbox provider: {provider}")


__all__ = [
    "Sandbox",
    "SandboxHandle",
    "create_sandbox",
]
