"""Tool dispatch with tenant checks and credential injection."""

import logging
import time
from typing import Any, Dict, Optional, Tuple

from .audit import AuditLogger
from .credentials import CredentialService
from .instance_store import InstanceRepository
from ..config import Settings, get_settings
from ..errors import (
    CredentialsMissingError,
    InstanceInactiveError,
    InstanceNotFoundError,
    SkillHubError,
    ToolDisabledError,
    ToolExecutionError,
    UnknownIntegrationTypeError,
    UnknownToolError,
    redact_secrets,
)
from ..integrations.base import Integration
from ..integrations.registry import IntegrationRegistry
from ..models.instance import IntegrationInstance

logger = logging.getLogger(__name__)


def parse_tool_id(tool_id: str) -> Tuple[str, Optional[int]]:
    """Split ``<tool>_<instanceId>`` into its parts.

    Identifiers without a numeric suffix are bare (platform) tool names.
    """
    name, sep, suffix = tool_id.rpartition("_")
    if sep and name and suffix.isdigit():
        return name, int(suffix)
    return tool_id, None


class ToolDispatcher:
    """Routes tool calls from the agent engine to integrations.

    Lookup and authorization failures are raised before credentials are
    decrypted or any outbound call is made.
    """

    def __init__(
        self,
        registry: IntegrationRegistry,
        repository: InstanceRepository,
        credentials: CredentialService,
        settings: Optional[Settings] = None,
        audit: Optional[AuditLogger] = None
    ):
        self.registry = registry
        self.repository = repository
        self.credentials = credentials
        self.settings = settings or get_settings()
        self.audit = audit or AuditLogger()

    async def _load_instance(self, organisation_id: str, instance_id: int) -> IntegrationInstance:
        instance = await self.repository.get(instance_id)
        # Foreign instances are reported exactly like missing ones
        if instance is None or instance.organisation_id != organisation_id:
            raise InstanceNotFoundError(instance_id)
        return instance

    def _resolve_integration(self, integration_type: str, tool_name: str) -> Integration:
        integration = self.registry.get(integration_type)
        if integration is None:
            raise UnknownIntegrationTypeError(integration_type)
        if not integration.has_tool(tool_name):
            raise UnknownToolError(tool_name, integration_type)
        return integration

    async def dispatch(
        self,
        organisation_id: str,
        instance_id: int,
        tool_name: str,
        parameters: Dict[str, Any],
        workflow_user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Execute a tool of an organisation's integration instance."""
        instance = await self._load_instance(organisation_id, instance_id)
        if not instance.active:
            raise InstanceInactiveError(instance_id)
        if instance.is_tool_disabled(tool_name):
            raise ToolDisabledError(tool_name, instance_id)

        integration = self._resolve_integration(instance.integration_type, tool_name)

        credentials = None
        if integration.requires_credentials():
            if not instance.has_credentials:
                raise CredentialsMissingError(instance_id, instance.integration_type)
            credentials = await self.credentials.refresh_if_needed(
                instance,
                integration,
                timeout=self.settings.credential_timeout_seconds
            )

        result = await self._execute(
            integration,
            organisation_id,
            tool_name,
            parameters,
            credentials,
            workflow_user_id=workflow_user_id,
            instance=instance
        )
        await self.repository.touch_last_accessed(instance_id)
        return result

    async def dispatch_platform(
        self,
        organisation_id: str,
        tool_name: str,
        parameters: Dict[str, Any],
        integration_type: Optional[str] = None,
        workflow_user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Execute a platform tool, which needs no instance.

        When ``integration_type`` is omitted the tool is looked up among the
        platform integrations. An instance row the organisation keeps for the
        platform type is honoured for its active flag and disabled tools.
        """
        if integration_type is None:
            integration = next(
                (i for i in self.registry.get_system_integrations() if i.has_tool(tool_name)),
                None
            )
            if integration is None:
                raise UnknownToolError(tool_name)
        else:
            integration = self._resolve_integration(integration_type, tool_name)

        if integration.requires_credentials():
            raise CredentialsMissingError(None, integration.get_type())

        instance = await self.repository.find_by_org_and_type(organisation_id, integration.get_type())
        if instance is not None:
            if not instance.active:
                raise InstanceInactiveError(instance.id)
            if instance.is_tool_disabled(tool_name):
                raise ToolDisabledError(tool_name, instance.id)

        return await self._execute(
            integration,
            organisation_id,
            tool_name,
            parameters,
            None,
            workflow_user_id=workflow_user_id
        )

    async def execute_tool_id(
        self,
        organisation_id: str,
        tool_id: str,
        parameters: Dict[str, Any],
        workflow_user_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Execute a tool by the identifier the tool listing hands out."""
        tool_name, instance_id = parse_tool_id(tool_id)
        if instance_id is not None:
            return await self.dispatch(organisation_id, instance_id, tool_name, parameters, workflow_user_id)
        return await self.dispatch_platform(
            organisation_id, tool_name, parameters, workflow_user_id=workflow_user_id
        )

    async def _execute(
        self,
        integration: Integration,
        organisation_id: str,
        tool_name: str,
        parameters: Dict[str, Any],
        credentials: Optional[Dict[str, Any]],
        workflow_user_id: Optional[str] = None,
        instance: Optional[IntegrationInstance] = None
    ) -> Dict[str, Any]:
        instance_id = instance.id if instance is not None else None
        parameters = {
            **parameters,
            "organisationId": organisation_id,
            "workflowUserId": workflow_user_id,
        }

        self.audit.tool_started(
            organisation_id, tool_name, parameters,
            instance_id=instance_id, integration_type=integration.get_type()
        )
        started = time.perf_counter()

        try:
            result = await integration.execute_tool(tool_name, parameters, credentials)
        except SkillHubError as e:
            self.audit.tool_failed(organisation_id, tool_name, e, instance_id=instance_id)
            raise
        except Exception as e:
            secrets = dict(credentials or {})
            if instance is not None and instance.encrypted_credentials:
                secrets["_ciphertext"] = instance.encrypted_credentials
            message = redact_secrets(f"Tool {tool_name} failed: {e}", secrets)
            logger.error(
                f"Unexpected error in {integration.get_type()}.{tool_name}: "
                f"{redact_secrets(repr(e), secrets)}"
            )
            error = ToolExecutionError(message, tool_name, integration.get_type(), original_error=e)
            self.audit.tool_failed(organisation_id, tool_name, error, instance_id=instance_id)
            raise error from e

        self.audit.tool_completed(
            organisation_id, tool_name, (time.perf_counter() - started) * 1000,
            instance_id=instance_id
        )
        return result
