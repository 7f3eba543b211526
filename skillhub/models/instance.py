"""Integration instance and execution models."""

from typing import Any, Dict, FrozenSet, List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class IntegrationInstance(BaseModel):
    """An organisation's configured use of one integration type."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Instance identifier")
    organisation_id: str = Field(..., description="Owning organisation")
    integration_type: str = Field(..., description="Registry key of the integration")
    name: str = Field("", description="Display name chosen by the organisation")
    workflow_user_id: Optional[str] = Field(None, description="Workflow user the instance is scoped to")
    owner_user_id: Optional[str] = Field(None, description="User who configured the instance")
    encrypted_credentials: Optional[str] = Field(None, description="Encrypted credential blob")
    disabled_tools: FrozenSet[str] = Field(default_factory=frozenset, description="Tools switched off")
    active: bool = Field(True, description="Whether the instance may be used")
    last_accessed_at: Optional[datetime] = Field(None, description="Last successful dispatch")

    @field_validator("disabled_tools", mode="before")
    @classmethod
    def validate_disabled_tools(cls, v):
        if v is None:
            return frozenset()
        return frozenset(v)

    @property
    def has_credentials(self) -> bool:
        return self.encrypted_credentials is not None

    def is_tool_disabled(self, tool_name: str) -> bool:
        return tool_name in self.disabled_tools


class ExecuteToolRequest(BaseModel):
    """Request body of the execute endpoint.

    Either ``integration_instance_id`` with ``tool_name``, or a ``tool_id`` as
    produced by the tool listing (``<tool>_<instanceId>`` or a bare system
    tool name).
    """

    integration_instance_id: Optional[int] = Field(None, description="Instance to execute against")
    tool_name: Optional[str] = Field(None, description="Tool to execute")
    tool_id: Optional[str] = Field(None, description="Tool identifier from the tool listing")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="Tool parameters")
    workflow_user_id: Optional[str] = Field(None, description="Workflow user on whose behalf the tool runs")

    @model_validator(mode="after")
    def validate_target(self):
        if not self.tool_id and not self.tool_name:
            raise ValueError("Either tool_id or tool_name is required")
        return self


class ExecuteToolResponse(BaseModel):
    """Successful execution result."""
    success: bool = True
    result: Dict[str, Any] = Field(default_factory=dict)


class ToolListResponse(BaseModel):
    """Tools available to an organisation in function-calling format."""
    tools: List[Dict[str, Any]] = Field(default_factory=list)
