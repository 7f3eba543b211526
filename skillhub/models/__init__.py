"""Data models for the SkillHub tool registry."""

from .instance import (
    IntegrationInstance,
    ExecuteToolRequest,
    ExecuteToolResponse,
    ToolListResponse,
)

__all__ = [
    "IntegrationInstance",
    "ExecuteToolRequest",
    "ExecuteToolResponse",
    "ToolListResponse",
]
