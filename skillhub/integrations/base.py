"""Integration capability: the unit of pluggability.

Every adapter is either a *platform* skill (no credentials, available to all
organisations) or a *personalized* skill (per-organisation credentials and an
agent system prompt). The variant is carried by :class:`SkillKind`; the
personalized variant adds :meth:`PersonalizedIntegration.get_system_prompt`.

Adapters expose tools by decorating coroutine methods with :func:`tool`. Each
handler receives ``(parameters, credentials)`` and returns a result mapping.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from functools import lru_cache
from typing import Any, Awaitable, Callable, ClassVar, Dict, List, Mapping, Optional, TYPE_CHECKING

from jinja2 import Environment, PackageLoader, StrictUndefined

from .schema import CredentialField, CredentialFieldType, ToolDefinition
from ..errors import ConfigurationError, InvalidParametersError, UnknownToolError

if TYPE_CHECKING:
    from ..models.instance import IntegrationInstance

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any], Optional[Dict[str, Any]]], Awaitable[Dict[str, Any]]]


@lru_cache
def prompt_environment() -> Environment:
    """Jinja2 environment over the bundled prompt templates."""
    return Environment(
        loader=PackageLoader("skillhub.integrations", "prompts"),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )


class SkillKind(str, Enum):
    """Variant tag of an integration."""
    PLATFORM = "platform"
    PERSONALIZED = "personalized"


def tool(name: str):
    """Mark a coroutine method as the handler of the named tool."""
    def decorator(func):
        func.__tool_name__ = name
        return func
    return decorator


class Integration(ABC):
    """Base capability contract shared by all adapters."""

    type: ClassVar[str]
    name: ClassVar[str]
    kind: ClassVar[SkillKind]
    experimental: ClassVar[bool] = False
    setup_instructions: ClassVar[Optional[str]] = None
    # Credential key holding the URL that tells instances apart in tool listings
    instance_url_key: ClassVar[Optional[str]] = None

    def __init__(self):
        self._tools: Dict[str, ToolDefinition] = {t.name: t for t in self.get_tools()}
        self._handlers: Dict[str, ToolHandler] = self._collect_handlers()

        missing = sorted(set(self._tools) - set(self._handlers))
        orphaned = sorted(set(self._handlers) - set(self._tools))
        if missing or orphaned:
            raise ConfigurationError(
                f"Integration '{self.type}' tool/handler mismatch",
                context={"missing_handlers": missing, "undeclared_handlers": orphaned}
            )

    def _collect_handlers(self) -> Dict[str, ToolHandler]:
        handlers: Dict[str, ToolHandler] = {}
        for attr in dir(type(self)):
            func = getattr(type(self), attr, None)
            tool_name = getattr(func, "__tool_name__", None)
            if tool_name:
                handlers[tool_name] = getattr(self, attr)
        return handlers

    @abstractmethod
    def get_tools(self) -> List[ToolDefinition]:
        """Static tool catalog; never depends on credentials."""

    def get_type(self) -> str:
        return self.type

    def get_name(self) -> str:
        return self.name

    def get_tool(self, tool_name: str) -> Optional[ToolDefinition]:
        return self._tools.get(tool_name)

    def has_tool(self, tool_name: str) -> bool:
        return tool_name in self._tools

    def requires_credentials(self) -> bool:
        return self.kind is SkillKind.PERSONALIZED

    @property
    def category(self) -> str:
        """Export category: ``user`` for credentialed skills, ``system`` otherwise."""
        return "user" if self.requires_credentials() else "system"

    def get_credential_fields(self) -> List[CredentialField]:
        return []

    def is_experimental(self) -> bool:
        return self.experimental

    def get_setup_instructions(self) -> Optional[str]:
        return self.setup_instructions

    def credential_errors(self, credentials: Mapping[str, Any]) -> List[str]:
        """Names of credential fields that fail the structural check."""
        errors = []
        values = dict(credentials)
        for field in self.get_credential_fields():
            if not field.applies_to(values) or field.type == CredentialFieldType.OAUTH:
                continue

            value = values.get(field.name)
            if value is None or (isinstance(value, str) and not value.strip()):
                if field.required:
                    errors.append(field.name)
                continue

            if field.type == CredentialFieldType.URL:
                ok = isinstance(value, str) and value.startswith(("http://", "https://"))
            elif field.type == CredentialFieldType.EMAIL:
                ok = isinstance(value, str) and "@" in value
            elif field.type == CredentialFieldType.SELECT:
                ok = value in (field.options or {})
            else:
                ok = isinstance(value, str)

            if not ok:
                errors.append(field.name)
        return errors

    def validate_credentials(self, credentials: Mapping[str, Any]) -> bool:
        """Structural check run before an instance is activated."""
        return not self.credential_errors(credentials)

    async def prepare_credentials(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        """Hook run by the dispatcher before execution, e.g. to refresh tokens."""
        return credentials

    async def execute_tool(
        self,
        tool_name: str,
        parameters: Dict[str, Any],
        credentials: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Run one tool through its handler."""
        handler = self._handlers.get(tool_name)
        if handler is None:
            raise UnknownToolError(tool_name, self.type)

        definition = self._tools[tool_name]
        missing = [
            name for name in definition.required_parameters
            if parameters.get(name) in (None, "")
        ]
        if missing:
            raise InvalidParametersError(tool_name, missing)

        logger.debug("Executing %s.%s", self.type, tool_name)
        return await handler(parameters, credentials)

    def describe(self) -> Dict[str, Any]:
        """Metadata for listings and UI."""
        return {
            "type": self.type,
            "name": self.name,
            "kind": self.kind.value,
            "category": self.category,
            "requires_credentials": self.requires_credentials(),
            "experimental": self.is_experimental(),
            "tool_count": len(self._tools),
            "credential_fields": [f.to_dict() for f in self.get_credential_fields()],
            "setup_instructions": self.get_setup_instructions(),
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} type={self.type!r}>"


class PlatformIntegration(Integration):
    """System tools that need no per-organisation credentials."""

    kind = SkillKind.PLATFORM


class PersonalizedIntegration(Integration):
    """Tools acting on tenant data with per-organisation credentials."""

    kind = SkillKind.PERSONALIZED
    prompt_template: ClassVar[str]

    def __init__(self, app_url: str = "http://localhost:8000"):
        self.app_url = app_url.rstrip("/")
        super().__init__()

    @abstractmethod
    def get_credential_fields(self) -> List[CredentialField]:
        """Credential inputs for this integration."""

    def get_system_prompt(self, instance: Optional["IntegrationInstance"] = None) -> str:
        """Render the agent system prompt, customised for an instance if given."""
        template = prompt_environment().get_template(self.prompt_template)
        return template.render(
            integration=self,
            tools=self.get_tools(),
            tool_count=len(self.get_tools()),
            api_base_url=self.app_url,
            integration_id=instance.id if instance is not None else "XXX",
            instance_name=instance.name if instance is not None else self.name,
        )
