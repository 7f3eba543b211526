"""Audit trail of tool executions."""

import logging
from typing import Any, Dict, Optional

from ..errors import SkillHubError, sanitize_data

audit_logger = logging.getLogger("skillhub.audit")


class AuditLogger:
    """Writes sanitized execution events to the ``skillhub.audit`` logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or audit_logger

    def _event(self, action: str, organisation_id: str, tool_name: str, **fields) -> Dict[str, Any]:
        return {
            "audit_action": action,
            "organisation_id": organisation_id,
            "tool_name": tool_name,
            **{k: v for k, v in fields.items() if v is not None},
        }

    def tool_started(
        self,
        organisation_id: str,
        tool_name: str,
        parameters: Dict[str, Any],
        instance_id: Optional[int] = None,
        integration_type: Optional[str] = None
    ):
        self.logger.info(
            f"Tool execution started: {tool_name}",
            extra=self._event(
                "tool_execution_started",
                organisation_id,
                tool_name,
                instance_id=instance_id,
                integration_type=integration_type,
                parameters=sanitize_data(parameters),
            )
        )

    def tool_completed(
        self,
        organisation_id: str,
        tool_name: str,
        duration_ms: float,
        instance_id: Optional[int] = None
    ):
        self.logger.info(
            f"Tool execution completed: {tool_name}",
            extra=self._event(
                "tool_execution_completed",
                organisation_id,
                tool_name,
                instance_id=instance_id,
                duration_ms=round(duration_ms, 2),
            )
        )

    def tool_failed(
        self,
        organisation_id: str,
        tool_name: str,
        error: SkillHubError,
        instance_id: Optional[int] = None
    ):
        self.logger.warning(
            f"Tool execution failed: {tool_name}",
            extra=self._event(
                "tool_execution_failed",
                organisation_id,
                tool_name,
                instance_id=instance_id,
                error_code=error.error_code,
            )
        )
