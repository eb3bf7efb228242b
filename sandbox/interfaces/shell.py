"""Shell and process abstractions for the sandbox."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass


@dataclass
class ShellResult:
    """Result of one interactive shell command."""

    exit_code: int
    output: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class InteractiveShell(ABC):
    """Long-lived shell attached to the sandbox terminal.

    Only one command runs at a time. Starting a new command interrupts the
    running one and invokes that command's ``on_abort_requested``.
    """

    @abstractmethod
    async def ready(self) -> None:
        """Wait until the shell has booted."""
        ...

    @abstractmethod
    async def execute_command(
        self,
        session_id: str,
        command: str,
        on_abort_requested: Callable[[], None] | None = None,
    ) -> ShellResult | None:
        """
        Run a command and wait for it to finish.

        Args:
            session_id: Identifier of the caller (one runner per session)
            command: Command text
            on_abort_requested: Called if the command gets interrupted

        Returns:
            ShellResult, or None if the shell produced no result

        Cancelling the awaiting task terminates the command.
        """
        ...


class SpawnedProcess(ABC):
    """A non-interactive child process with combined output."""

    @abstractmethod
    def output(self) -> AsyncIterator[str]:
        """Decoded output chunks until the process closes its streams."""
        ...

    @abstractmethod
    async def wait(self) -> int:
        """Wait for exit and return the exit code."""
        ...

    @abstractmethod
    def kill(self) -> None:
        ...
