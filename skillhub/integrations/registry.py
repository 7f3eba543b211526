"""Integration registry for looking up available integrations."""

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Any
import logging

from .base import Integration
from .schema import ToolDefinition
from ..errors import DuplicateIntegrationError

logger = logging.getLogger(__name__)

CATEGORIES = ("all", "system", "user")


class IntegrationRegistry:
    """Immutable catalog of integrations keyed by type.

    Built once at startup. Registration order is preserved; when two
    integrations share a type the later one wins, unless ``strict`` is set.
    """

    def __init__(self, integrations: Iterable[Integration], strict: bool = False):
        entries: Dict[str, Integration] = {}
        for integration in integrations:
            integration_type = integration.get_type()
            if integration_type in entries:
                if strict:
                    raise DuplicateIntegrationError(integration_type)
                logger.warning(
                    f"Integration type '{integration_type}' registered twice; "
                    f"{type(integration).__name__} replaces {type(entries[integration_type]).__name__}"
                )
            entries[integration_type] = integration

        self._integrations = MappingProxyType(entries)
        logger.info(f"Integration registry built with {len(entries)} integrations")

    @property
    def integrations(self) -> MappingProxyType:
        return self._integrations

    def get(self, integration_type: str) -> Optional[Integration]:
        """Get an integration by type."""
        return self._integrations.get(integration_type)

    def has(self, integration_type: str) -> bool:
        return integration_type in self._integrations

    def __contains__(self, integration_type: object) -> bool:
        return integration_type in self._integrations

    def __len__(self) -> int:
        return len(self._integrations)

    def __iter__(self) -> Iterator[Integration]:
        return iter(self._integrations.values())

    def all(self) -> List[Integration]:
        return list(self._integrations.values())

    def get_types(self) -> List[str]:
        return list(self._integrations)

    def get_system_integrations(self) -> List[Integration]:
        """Integrations usable without credentials."""
        return [i for i in self._integrations.values() if not i.requires_credentials()]

    def get_user_integrations(self) -> List[Integration]:
        """Integrations that need per-organisation credentials."""
        return [i for i in self._integrations.values() if i.requires_credentials()]

    def select(self, category: str = "all") -> List[Integration]:
        """Integrations of one export category."""
        if category == "system":
            return self.get_system_integrations()
        if category == "user":
            return self.get_user_integrations()
        if category == "all":
            return self.all()
        raise ValueError(f"Invalid category '{category}'. Must be one of: {', '.join(CATEGORIES)}")

    def find_tool(self, tool_name: str) -> Optional[Tuple[Integration, ToolDefinition]]:
        """First integration declaring a tool with this name."""
        for integration in self._integrations.values():
            definition = integration.get_tool(tool_name)
            if definition is not None:
                return integration, definition
        return None

    def get_stats(self) -> Dict[str, Any]:
        """Get statistics about registered integrations."""
        by_category: Dict[str, int] = {"system": 0, "user": 0}
        tool_count = 0
        for integration in self._integrations.values():
            by_category[integration.category] += 1
            tool_count += len(integration.get_tools())

        return {
            "total_integrations": len(self._integrations),
            "total_tools": tool_count,
            "by_category": by_category,
            "experimental": [i.get_type() for i in self._integrations.values() if i.is_experimental()],
        }
