"""Tool listings for the agent engine."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .encryption import CredentialCipher
from .instance_store import InstanceRepository
from ..errors import DecryptionFailedError
from ..integrations.base import Integration
from ..integrations.registry import IntegrationRegistry
from ..models.instance import IntegrationInstance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolFilterCriteria:
    """Which tools a listing should contain.

    No ``tool_types`` means every configured user integration and no system
    tools. ``"system"`` selects all platform tools; a specific type such as
    ``"jira"`` or ``"system.share_file"`` selects that integration.
    """

    workflow_user_id: Optional[str] = None
    tool_types: Tuple[str, ...] = ()

    @classmethod
    def from_csv(cls, workflow_user_id: Optional[str], tool_type_csv: Optional[str]) -> "ToolFilterCriteria":
        """Build criteria from a comma separated type list such as ``system,jira``."""
        tool_types: List[str] = []
        for item in (tool_type_csv or "").split(","):
            item = item.strip()
            if item and item not in tool_types:
                tool_types.append(item)
        return cls(workflow_user_id, tuple(tool_types))

    @property
    def has_tool_type_filter(self) -> bool:
        return bool(self.tool_types)

    @property
    def includes_system_tools(self) -> bool:
        return "system" in self.tool_types

    def includes_type(self, integration_type: str) -> bool:
        return integration_type in self.tool_types

    @property
    def includes_only_system_tools(self) -> bool:
        if not self.tool_types:
            return False
        return all(t == "system" or t.startswith("system.") for t in self.tool_types)


class ToolProviderService:
    """Lists the tools an organisation can call, in function-calling format."""

    def __init__(
        self,
        registry: IntegrationRegistry,
        repository: InstanceRepository,
        cipher: CredentialCipher
    ):
        self.registry = registry
        self.repository = repository
        self.cipher = cipher

    async def get_tools_for_organisation(
        self,
        organisation_id: str,
        criteria: ToolFilterCriteria
    ) -> List[Dict[str, Any]]:
        instances = await self.repository.list_for_organisation(organisation_id, criteria.workflow_user_id)
        by_type: Dict[str, List[IntegrationInstance]] = {}
        for instance in instances:
            by_type.setdefault(instance.integration_type, []).append(instance)

        tools: List[Dict[str, Any]] = []
        for integration in self.registry:
            configured = by_type.get(integration.get_type(), [])
            if integration.requires_credentials():
                tools.extend(self._user_tools(integration, configured, criteria))
            else:
                tools.extend(self._system_tools(integration, configured, criteria))
        return tools

    def _system_tools(
        self,
        integration: Integration,
        instances: Sequence[IntegrationInstance],
        criteria: ToolFilterCriteria
    ) -> List[Dict[str, Any]]:
        # Platform tools are only listed on explicit request
        if not (criteria.includes_system_tools or criteria.includes_type(integration.get_type())):
            return []

        instance = instances[0] if instances else None
        if instance is not None and not instance.active:
            return []
        return self._build_tools(integration, instance.disabled_tools if instance else frozenset())

    def _user_tools(
        self,
        integration: Integration,
        instances: Sequence[IntegrationInstance],
        criteria: ToolFilterCriteria
    ) -> List[Dict[str, Any]]:
        if criteria.includes_only_system_tools:
            return []
        if criteria.has_tool_type_filter and not criteria.includes_type(integration.get_type()):
            return []

        tools: List[Dict[str, Any]] = []
        for instance in instances:
            if not instance.active or not instance.has_credentials:
                continue
            tools.extend(self._build_tools(integration, instance.disabled_tools, instance))
        return tools

    def _build_tools(
        self,
        integration: Integration,
        disabled_tools: frozenset,
        instance: Optional[IntegrationInstance] = None
    ) -> List[Dict[str, Any]]:
        suffix = ""
        url = None
        if instance is not None:
            suffix = f"_{instance.id}"
            url = self._instance_url(integration, instance)

        tools = []
        for definition in integration.get_tools():
            if definition.name in disabled_tools:
                continue
            description = definition.description
            if url:
                description = f"{description} ({url})"
            tools.append({
                "type": "function",
                "function": {
                    "name": definition.name + suffix,
                    "description": description,
                    "parameters": definition.to_function_schema(),
                },
            })
        return tools

    def _instance_url(self, integration: Integration, instance: IntegrationInstance) -> Optional[str]:
        if not integration.instance_url_key or not instance.has_credentials:
            return None
        try:
            credentials = self.cipher.decrypt_credentials(instance.encrypted_credentials)
        except DecryptionFailedError:
            logger.warning(f"Could not read credentials of instance {instance.id} for tool listing")
            return None
        return credentials.get(integration.instance_url_key) or None
