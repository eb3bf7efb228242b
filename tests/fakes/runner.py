"""ActionRunner wired to the in-memory sandbox, with every alert captured."""

from __future__ import annotations

from dataclasses import dataclass, field

from config.schema import RuntimeSettings, StartConfig
from core.runtime import ActionCallbackData, ActionRunner
from core.runtime.alerts import ActionAlert, DeployAlert, ExternalServiceAlert

from fakes.sandbox import FakeSandbox, ScriptedShell


@dataclass
class RunnerHarness:
    sandbox: FakeSandbox
    shell: ScriptedShell
    runner: ActionRunner
    alerts: list[ActionAlert] = field(default_factory=list)
    external_alerts: list[ExternalServiceAlert] = field(default_factory=list)
    deploy_alerts: list[DeployAlert] = field(default_factory=list)

    def add(self, action_id: str, action) -> ActionCallbackData:
        data = ActionCallbackData(action_id=action_id, action=action)
        self.runner.add_action(data)
        return data

    def status(self, action_id: str) -> str:
        return self.runner.get_action(action_id).status


def make_harness(settle_delay: float = 0.0, settings: RuntimeSettings | None = None) -> RunnerHarness:
    sandbox = FakeSandbox()
    shell = ScriptedShell()
    settings = settings or RuntimeSettings(runner_id="test", start=StartConfig(settle_delay_seconds=settle_delay))
    alerts: list[ActionAlert] = []
    external_alerts: list[ExternalServiceAlert] = []
    deploy_alerts: list[DeployAlert] = []
    runner = ActionRunner(
        sandbox,
        shell_provider=lambda: shell,
        on_alert=alerts.append,
        on_external_alert=external_alerts.append,
        on_deploy_alert=deploy_alerts.append,
        settings=settings,
    )
    return RunnerHarness(sandbox, shell, runner, alerts, external_alerts, deploy_alerts)
