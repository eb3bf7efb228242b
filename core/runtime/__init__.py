"""Action execution engine.

Usage:
    from core.runtime import ActionRunner, ActionCallbackData, FileAction

    runner = ActionRunner(sandbox, shell_provider=sandbox.shell, on_alert=show_alert)
    data = ActionCallbackData(action_id="a1", action=FileAction(file_path="src/app.py", content="..."))
    runner.add_action(data)
    await runner.run_action(data)
"""

from core.runtime.alerts import (
    ActionAlert,
    AlertEmitter,
    DeployAlert,
    DeployDetails,
    DeployStage,
    ExternalServiceAlert,
    build_deploy_alert,
)
from core.runtime.errors import (
    ActionAbortedError,
    ActionCommandError,
    PatchApplyError,
    RuntimeEngineError,
    UnknownOperationError,
    UnreachableError,
)
from core.runtime.history import FileHistory, FileHistoryStore, FileVersion
from core.runtime.project_commands import ProjectCommands, detect_project_commands
from core.runtime.runner import ActionRunner
from core.runtime.state import ActionState, ActionStateTable
from core.runtime.types import (
    Action,
    ActionCallbackData,
    ActionStatus,
    ActionType,
    BuildAction,
    BuildOutput,
    ChangeSource,
    ExternalOperation,
    ExternalServiceAction,
    FileAction,
    ShellAction,
    StartAction,
    parse_action,
)
from core.runtime.workbench import Artifact, Workbench

__all__ = [
    # Engine
    "ActionRunner",
    "Workbench",
    "Artifact",
    "ActionState",
    "ActionStateTable",
    # Descriptors
    "Action",
    "ActionCallbackData",
    "ActionStatus",
    "ActionType",
    "BuildAction",
    "BuildOutput",
    "ChangeSource",
    "ExternalOperation",
    "ExternalServiceAction",
    "FileAction",
    "ShellAction",
    "StartAction",
    "parse_action",
    # Alerts
    "ActionAlert",
    "AlertEmitter",
    "DeployAlert",
    "DeployDetails",
    "DeployStage",
    "ExternalServiceAlert",
    "build_deploy_alert",
    # History
    "FileHistory",
    "FileHistoryStore",
    "FileVersion",
    # Project commands
    "ProjectCommands",
    "detect_project_commands",
    # Errors
    "ActionAbortedError",
    "ActionCommandError",
    "PatchApplyError",
    "RuntimeEngineError",
    "UnknownOperationError",
    "UnreachableError",
]
