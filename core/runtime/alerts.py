"""Structured alerts and the three-channel emitter.

The engine never assumes a UI is listening: every channel is optional and a
failing listener is logged, not propagated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from .types import ActionStatus

logger = logging.getLogger(__name__)

AlertType = Literal["info", "success", "error", "warning"]


class DeployStage(StrEnum):
    BUILDING = "building"
    DEPLOYING = "deploying"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class ActionAlert:
    type: AlertType
    title: str
    description: str
    content: str
    source: str = "terminal"


@dataclass(frozen=True, slots=True)
class ExternalServiceAlert:
    type: AlertType
    title: str
    description: str
    content: str
    source: str = "supabase"


@dataclass(frozen=True, slots=True)
class DeployAlert:
    type: AlertType
    title: str
    description: str
    stage: DeployStage
    build_status: ActionStatus
    deploy_status: ActionStatus
    content: str = ""
    url: str | None = None
    source: str = "netlify"


@dataclass(frozen=True, slots=True)
class DeployDetails:
    url: str | None = None
    error: str | None = None
    source: str | None = None


class AlertEmitter:
    def __init__(
        self,
        on_alert: Callable[[ActionAlert], None] | None = None,
        on_external_alert: Callable[[ExternalServiceAlert], None] | None = None,
        on_deploy_alert: Callable[[DeployAlert], None] | None = None,
    ):
        self.on_alert = on_alert
        self.on_external_alert = on_external_alert
        self.on_deploy_alert = on_deploy_alert

    def action(self, alert: ActionAlert) -> None:
        self._dispatch(self.on_alert, alert)

    def external(self, alert: ExternalServiceAlert) -> None:
        self._dispatch(self.on_external_alert, alert)

    def deploy(self, alert: DeployAlert) -> None:
        self._dispatch(self.on_deploy_alert, alert)

    @staticmethod
    def _dispatch(sink, alert) -> None:
        if sink is None:
            return
        try:
            sink(alert)
        except Exception:
            logger.exception("Alert listener failed for %r", alert.title)


def build_deploy_alert(
    stage: DeployStage | str,
    status: ActionStatus | str,
    details: DeployDetails | None = None,
) -> DeployAlert:
    """Derive a complete deploy alert from just ``(stage, status)``."""
    stage = DeployStage(stage)
    status = ActionStatus(status)
    details = details or DeployDetails()

    if status == ActionStatus.FAILED:
        alert_type: AlertType = "error"
    elif status == ActionStatus.COMPLETE:
        alert_type = "success"
    else:
        alert_type = "info"

    title = {
        DeployStage.BUILDING: "Building Application",
        DeployStage.DEPLOYING: "Deploying Application",
        DeployStage.COMPLETE: "Deployment Complete",
    }[stage]

    building = stage == DeployStage.BUILDING
    if status == ActionStatus.FAILED:
        description = f"{'Build' if building else 'Deployment'} failed"
    elif status == ActionStatus.RUNNING:
        description = f"{'Building' if building else 'Deploying'} your application..."
    elif status == ActionStatus.COMPLETE:
        description = f"{'Build' if building else 'Deployment'} completed successfully"
    else:
        description = f"Preparing to {'build' if building else 'deploy'} your application"

    # Past the building stage the build is by definition done.
    build_status = status if building else ActionStatus.COMPLETE
    deploy_status = ActionStatus.PENDING if building else status

    return DeployAlert(
        type=alert_type,
        title=title,
        description=description,
        content=details.error or "",
        url=details.url,
        stage=stage,
        build_status=build_status,
        deploy_status=deploy_status,
        source=details.source or "netlify",
    )
