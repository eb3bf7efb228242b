"""Exception types raised by the execution engine.

Fail-loud policy:
- Protocol violations (unknown action id, missing executor) raise UnreachableError.
- Command failures carry the captured output so alerts can show it verbatim.
"""

from __future__ import annotations


class RuntimeEngineError(Exception):
    """Base class for engine errors."""


class ActionCommandError(RuntimeEngineError):
    """A shell, start or build command exited non-zero."""

    def __init__(self, header: str, output: str):
        super().__init__(f"Failed To Execute Shell Command: {header}\n\nOutput:\n{output}")
        self.header = header
        self.output = output


class UnreachableError(RuntimeEngineError):
    """Caller bug: the engine was driven outside its protocol."""


class UnknownOperationError(RuntimeEngineError):
    """External-service action with an operation kind the engine does not know."""


class PatchApplyError(RuntimeEngineError):
    """A patch hunk did not match the content it was applied to."""


class ActionAbortedError(RuntimeEngineError):
    """The action's abort signal fired while it was waiting."""
