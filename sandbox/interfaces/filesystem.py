"""Virtual filesystem abstraction consumed by the execution engine.

Separates I/O mechanism (local disk, in-browser container, remote sandbox)
from policy (patching, history, build probing).
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class VirtualFileSystem(ABC):
    """Async filesystem rooted at the sandbox working directory.

    Paths are workdir-relative or absolute paths inside the workdir.

    Implementations:
    - LocalFileSystem: direct local filesystem access
    - InMemoryFileSystem (tests): dict-backed
    """

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read a UTF-8 text file.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        ...

    @abstractmethod
    async def write_file(self, path: str, content: str) -> None:
        """Write content, replacing any existing file. Parent must exist."""
        ...

    @abstractmethod
    async def mkdir(self, path: str, recursive: bool = False) -> None:
        """Create a directory. With ``recursive`` an existing directory is not an error."""
        ...

    @abstractmethod
    async def readdir(self, path: str) -> list[str]:
        """List entry names of a directory.

        Raises:
            FileNotFoundError: If the directory does not exist
            NotADirectoryError: If path is a file
        """
        ...

    async def exists(self, path: str) -> bool:
        try:
            await self.read_file(path)
            return True
        except (FileNotFoundError, IsADirectoryError):
            pass
        try:
            await self.readdir(path)
            return True
        except (FileNotFoundError, NotADirectoryError):
            return False
