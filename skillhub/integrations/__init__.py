"""Integration capabilities, their registry and catalog export."""

from .base import Integration, PersonalizedIntegration, PlatformIntegration, SkillKind, tool
from .schema import CredentialField, CredentialFieldType, ParameterSpec, ParameterType, ToolDefinition
from .registry import IntegrationRegistry
from .export import CatalogExporter

__all__ = [
    "Integration",
    "PersonalizedIntegration",
    "PlatformIntegration",
    "SkillKind",
    "tool",
    "CredentialField",
    "CredentialFieldType",
    "ParameterSpec",
    "ParameterType",
    "ToolDefinition",
    "IntegrationRegistry",
    "CatalogExporter",
]
