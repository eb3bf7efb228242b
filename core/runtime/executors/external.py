"""External-service operations (schema migrations, data queries).

The engine never calls the remote service: migrations only materialise the
migration file, queries are handed to a confirmation flow via an alert.
"""

from __future__ import annotations

import logging
from typing import Any

from ..alerts import AlertEmitter, ExternalServiceAlert
from ..errors import UnknownOperationError
from ..types import ActionType, ExternalOperation, ExternalServiceAction
from .base import ActionExecutor, ExecutionContext
from .file import FileExecutor

logger = logging.getLogger(__name__)


class ExternalServiceExecutor(ActionExecutor):
    action_type = ActionType.EXTERNAL_OP

    def __init__(self, files: FileExecutor, alerts: AlertEmitter):
        self._files = files
        self._alerts = alerts

    async def execute(self, ctx: ExecutionContext) -> dict[str, Any]:
        action: ExternalServiceAction = self._expect(ctx, ExternalServiceAction)
        logger.debug("[%s action] operation=%s path=%s", action.service, action.operation, action.file_path)
        label = action.service.capitalize()

        if action.operation == ExternalOperation.MIGRATION:
            if not action.file_path:
                raise ValueError("Migration requires a file_path")
            self._alerts.external(
                ExternalServiceAlert(
                    type="info",
                    title=f"{label} Migration",
                    description=f"Create migration file: {action.file_path}",
                    content=action.content,
                    source=action.service,
                )
            )
            await self._files.write(action.file_path, action.content)
            return {"success": True}

        if action.operation == ExternalOperation.QUERY:
            self._alerts.external(
                ExternalServiceAlert(
                    type="info",
                    title=f"{label} Query",
                    description="Execute database query",
                    content=action.content,
                    source=action.service,
                )
            )
            # Execution happens after the user confirms the alert.
            return {"pending": True}

        raise UnknownOperationError(f"Unknown operation: {action.operation}")
