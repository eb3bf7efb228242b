"""Action descriptors and shared value types for the execution engine.

Descriptors are what the model-output parser hands over: one tagged variant
per action type, validated with pydantic so malformed payloads fail loud at
the boundary instead of deep inside an executor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter


class ActionType(StrEnum):
    FILE = "file"
    SHELL = "shell"
    START = "start"
    BUILD = "build"
    EXTERNAL_OP = "external-op"


class ActionStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETE = "complete"
    ABORTED = "aborted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ActionStatus.COMPLETE, ActionStatus.ABORTED, ActionStatus.FAILED)


class ChangeSource(StrEnum):
    USER = "user"
    AUTO_SAVE = "auto-save"
    EXTERNAL = "external"


class ExternalOperation(StrEnum):
    MIGRATION = "migration"
    QUERY = "query"


class _ActionBase(BaseModel):
    model_config = {"frozen": True, "extra": "ignore"}

    content: str = ""


class FileAction(_ActionBase):
    type: Literal["file"] = "file"
    file_path: str
    change_source: ChangeSource = ChangeSource.EXTERNAL


class ShellAction(_ActionBase):
    type: Literal["shell"] = "shell"


class StartAction(_ActionBase):
    type: Literal["start"] = "start"


class BuildAction(_ActionBase):
    """Build step. ``content`` optionally overrides the configured build command."""

    type: Literal["build"] = "build"
    output_dirs: list[str] | None = Field(None, description="Preferred output directories, checked before the defaults")


class ExternalServiceAction(_ActionBase):
    type: Literal["external-op"] = "external-op"
    # Kept as a plain string: unknown kinds must reach the executor and fail there.
    operation: str
    file_path: str | None = None
    service: str = "supabase"
    project_id: str | None = None


Action = Annotated[
    FileAction | ShellAction | StartAction | BuildAction | ExternalServiceAction,
    Field(discriminator="type"),
]

_ACTION_ADAPTER: TypeAdapter[Action] = TypeAdapter(Action)


def parse_action(data: dict[str, Any] | BaseModel) -> Action:
    """Validate a raw descriptor dict into the matching action variant."""
    if isinstance(data, BaseModel):
        return _ACTION_ADAPTER.validate_python(data.model_dump())
    return _ACTION_ADAPTER.validate_python(data)


@dataclass(frozen=True, slots=True)
class ActionCallbackData:
    """One parsed action as emitted by the message parser."""

    action_id: str
    action: Action
    artifact_id: str = ""
    message_id: str = ""


@dataclass(frozen=True, slots=True)
class BuildOutput:
    path: str
    exit_code: int
    output: str
