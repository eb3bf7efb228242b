"""Detect how to install and start an imported project."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from .types import ShellAction, StartAction

logger = logging.getLogger(__name__)

PREFERRED_SCRIPTS = ("dev", "start", "preview")


class ProjectFile(Protocol):
    path: str
    content: str


@dataclass(frozen=True)
class FileContent:
    path: str
    content: str


@dataclass(frozen=True)
class ProjectCommands:
    type: str = ""
    setup_command: str = ""
    start_command: str = ""
    followup_message: str = ""

    @property
    def empty(self) -> bool:
        return not self.setup_command and not self.start_command

    def to_actions(self) -> list[ShellAction | StartAction]:
        actions: list[ShellAction | StartAction] = []
        if self.setup_command:
            actions.append(ShellAction(content=self.setup_command))
        if self.start_command:
            actions.append(StartAction(content=self.start_command))
        return actions


def detect_project_commands(files: Iterable[ProjectFile]) -> ProjectCommands:
    files = list(files)
    package_json = next((f for f in files if f.path.endswith("package.json")), None)

    if package_json is not None:
        try:
            scripts = json.loads(package_json.content).get("scripts") or {}
        except (json.JSONDecodeError, AttributeError) as e:
            logger.error("Failed to parse package.json: %s", e)
            return ProjectCommands()

        script = next((name for name in PREFERRED_SCRIPTS if scripts.get(name)), None)
        if script:
            return ProjectCommands(
                type="Node.js",
                setup_command="npm install",
                start_command=f"npm run {script}",
                followup_message=f'Found the "{script}" script in package.json. Running "npm run {script}" after installation.',
            )
        return ProjectCommands(
            type="Node.js",
            setup_command="npm install",
            followup_message="Would you like me to inspect package.json to determine the available scripts for running this project?",
        )

    if any(f.path.endswith("index.html") for f in files):
        return ProjectCommands(type="Static", start_command="npx --yes serve")

    return ProjectCommands()
