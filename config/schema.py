"""Core configuration schema for the workbench runtime using Pydantic.

This module defines the complete configuration structure with:
- Nested config groups (History, Build, Start, Streaming)
- Field validators for directories, candidate lists and delays
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

DEFAULT_BUILD_OUTPUT_DIRS = ["dist", "build", "out", "output", ".next", "public"]

# ============================================================================
# File history
# ============================================================================


class HistoryConfig(BaseModel):
    """Configuration for per-file version history."""

    directory: str = Field(".history", description="Reserved workspace directory holding history documents")
    max_versions: int = Field(10, gt=0, description="Most recent versions kept per file")
    workspace_prefixes: list[str] = Field(
        default_factory=lambda: ["/home/project/"],
        description="Path prefixes stripped before mirroring a path under the history directory",
    )

    @field_validator("directory")
    @classmethod
    def validate_directory(cls, v: str) -> str:
        v = v.strip().strip("/")
        if not v or v.startswith(".."):
            raise ValueError("history directory must be a non-empty workspace-relative path")
        return v

    @field_validator("workspace_prefixes")
    @classmethod
    def normalize_prefixes(cls, v: list[str]) -> list[str]:
        """Ensure every prefix ends with a slash so '/home/projectX' is not stripped."""
        return [p if p.endswith("/") else f"{p}/" for p in v if p]


# ============================================================================
# Build / start
# ============================================================================


class BuildConfig(BaseModel):
    command: list[str] = Field(default_factory=lambda: ["npm", "run", "build"], description="Build command argv")
    output_dirs: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BUILD_OUTPUT_DIRS),
        description="Candidate build output directories, checked in order",
    )

    @field_validator("command", "output_dirs")
    @classmethod
    def validate_non_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("must not be empty")
        return v


class StartConfig(BaseModel):
    settle_delay_seconds: float = Field(
        2.0, ge=0.0, description="Delay before a start action hands control back to the queue"
    )


class StreamingConfig(BaseModel):
    sample_interval_seconds: float = Field(0.1, ge=0.0, description="Throttle interval for streaming updates")


# ============================================================================
# Main settings
# ============================================================================


class RuntimeSettings(BaseModel):
    """Main workbench runtime configuration.

    Configuration priority (highest to lowest):
    1. CLI overrides
    2. Environment variables (WORKBENCH_*)
    3. Project config (.workbench/runtime.json)
    4. User config (~/.workbench/runtime.json)
    5. Defaults declared here

    Note: This uses BaseModel instead of BaseSettings to avoid
    automatic environment variable loading conflicts with our
    three-tier config system.
    """

    history: HistoryConfig = Field(default_factory=HistoryConfig, description="File history")
    build: BuildConfig = Field(default_factory=BuildConfig, description="Build actions")
    start: StartConfig = Field(default_factory=StartConfig, description="Start actions")
    streaming: StreamingConfig = Field(default_factory=StreamingConfig, description="Streaming updates")

    runner_id: str | None = Field(None, description="Shell session id; defaults to a timestamp per runner")
    workspace_root: str | None = Field(None, description="Workspace root directory")

    model_config = {"extra": "forbid"}
