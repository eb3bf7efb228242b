"""Sandbox interfaces — ABC + data classes for shell and filesystem.

Re-exports everything from shell and filesystem submodules.
"""

from sandbox.interfaces.filesystem import VirtualFileSystem
from sandbox.interfaces.shell import (
    InteractiveShell,
    ShellResult,
    SpawnedProcess,
)

__all__ = [
    # Shell
    "InteractiveShell",
    "ShellResult",
    "SpawnedProcess",
    # Filesystem
    "VirtualFileSystem",
]
