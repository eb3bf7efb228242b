"""Runtime configuration loader.

Configuration priority (highest to lowest):
1. CLI overrides
2. Environment variables (WORKBENCH_*)
3. Project config (.workbench/runtime.json in workspace)
4. User config (~/.workbench/runtime.json)
5. Schema defaults
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from config.schema import RuntimeSettings

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".workbench"

# env var -> (group, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "WORKBENCH_HISTORY_DIR": ("history", "directory"),
    "WORKBENCH_HISTORY_MAX_VERSIONS": ("history", "max_versions"),
    "WORKBENCH_START_SETTLE_DELAY": ("start", "settle_delay_seconds"),
    "WORKBENCH_STREAM_SAMPLE_INTERVAL": ("streaming", "sample_interval_seconds"),
}


class ConfigLoader:
    """Three-tier loader for RuntimeSettings."""

    def __init__(self, workspace_root: str | Path | None = None):
        self.workspace_root = Path(workspace_root).resolve() if workspace_root else None

    def load(self, cli_overrides: dict[str, Any] | None = None) -> RuntimeSettings:
        """Load runtime configuration with three-tier merge."""
        user_config = self._load_user_config()
        project_config = self._load_project_config()

        final_config = self._deep_merge(user_config, project_config, self._load_env_overrides())
        if cli_overrides:
            final_config = self._deep_merge(final_config, cli_overrides)

        if self.workspace_root and not final_config.get("workspace_root"):
            final_config["workspace_root"] = str(self.workspace_root)

        return RuntimeSettings(**_normalize(final_config))

    # ── Internal helpers ──

    def _load_user_config(self) -> dict[str, Any]:
        return _read_json_object(Path.home() / CONFIG_DIR_NAME / "runtime.json")

    def _load_project_config(self) -> dict[str, Any]:
        if not self.workspace_root:
            return {}
        return _read_json_object(self.workspace_root / CONFIG_DIR_NAME / "runtime.json")

    @staticmethod
    def _load_env_overrides() -> dict[str, Any]:
        result: dict[str, Any] = {}
        for env_name, (group, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_name, "").strip()
            if value:
                result.setdefault(group, {})[key] = value
        return result

    def _deep_merge(self, *layers: dict[str, Any]) -> dict[str, Any]:
        """Merge config layers left to right; nested groups merge key by key, None never overrides."""
        merged: dict[str, Any] = {}
        for layer in layers:
            for key, value in layer.items():
                current = merged.get(key)
                if value is None and key in merged:
                    continue
                if isinstance(value, dict) and isinstance(current, dict):
                    merged[key] = self._deep_merge(current, value)
                else:
                    merged[key] = value
        return merged


def _read_json_object(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top-level value is not an object", path)
        return {}
    return data


def _normalize(value: Any) -> Any:
    """Expand ${VAR} and ~ in strings and drop None entries so schema defaults apply."""
    if isinstance(value, dict):
        return {k: _normalize(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_normalize(v) for v in value if v is not None]
    if isinstance(value, str):
        return os.path.expandvars(os.path.expanduser(value))
    return value


def load_config(
    workspace_root: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> RuntimeSettings:
    """Convenience function to load runtime configuration."""
    return ConfigLoader(workspace_root=workspace_root).load(cli_overrides=cli_overrides)
