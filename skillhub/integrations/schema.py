"""Schema models describing tools and credential inputs."""

from typing import Any, Dict, List, Optional, Tuple
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ParameterType(str, Enum):
    """JSON types a tool parameter may take."""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class CredentialFieldType(str, Enum):
    """Input kinds for credential forms."""
    TEXT = "text"
    URL = "url"
    EMAIL = "email"
    PASSWORD = "password"
    OAUTH = "oauth"
    SELECT = "select"


class ParameterSpec(BaseModel):
    """One named, typed parameter of a tool."""

    model_config = ConfigDict(frozen=True, use_enum_values=True, validate_default=True)

    name: str = Field(..., min_length=1, description="Parameter name")
    type: ParameterType = Field(ParameterType.STRING, description="JSON type of the value")
    required: bool = Field(False, description="Whether the caller must supply it")
    description: Optional[str] = Field(None, description="Hint for the agent")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "type": self.type, "required": self.required}
        if self.description is not None:
            data["description"] = self.description
        return data


class ToolDefinition(BaseModel):
    """One callable operation exposed to the agent engine."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Tool name, unique within its integration")
    description: str = Field(..., description="Natural language description consumed by the agent")
    parameters: Tuple[ParameterSpec, ...] = Field(default_factory=tuple, description="Ordered parameter schema")

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        if not v or not v.strip():
            raise ValueError("Tool description must not be empty")
        return v

    @model_validator(mode="after")
    def validate_unique_parameters(self):
        seen = set()
        for param in self.parameters:
            if param.name in seen:
                raise ValueError(f"Duplicate parameter '{param.name}' in tool '{self.name}'")
            seen.add(param.name)
        return self

    def get_parameter(self, name: str) -> Optional[ParameterSpec]:
        return next((p for p in self.parameters if p.name == name), None)

    @property
    def required_parameters(self) -> List[str]:
        return [p.name for p in self.parameters if p.required]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
        }

    def to_function_schema(self) -> Dict[str, Any]:
        """JSON-schema object in function-calling format."""
        return {
            "type": "object",
            "properties": {
                p.name: {"type": p.type, "description": p.description or ""}
                for p in self.parameters
            },
            "required": self.required_parameters,
        }


class CredentialField(BaseModel):
    """One configuration input an integration needs."""

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    name: str = Field(..., min_length=1, description="Field name, used as the credential key")
    type: CredentialFieldType = Field(..., description="Input kind")
    label: str = Field(..., description="Human-readable label")
    placeholder: Optional[str] = Field(None, description="Placeholder text")
    required: bool = Field(True, description="Whether the field must be filled")
    description: Optional[str] = Field(None, description="Help text")
    options: Optional[Dict[str, str]] = Field(None, description="Value to label map for select fields")
    conditional_on: Optional[str] = Field(None, description="Field this one depends on")
    conditional_value: Optional[str] = Field(None, description="Value of conditional_on that enables this field")

    @model_validator(mode="after")
    def validate_select_options(self):
        if self.type == CredentialFieldType.SELECT.value and not self.options:
            raise ValueError(f"Select field '{self.name}' needs options")
        return self

    @property
    def is_conditional(self) -> bool:
        return self.conditional_on is not None

    def applies_to(self, values: Dict[str, Any]) -> bool:
        """Whether the field is in effect for the given credential values."""
        if not self.is_conditional:
            return True
        return values.get(self.conditional_on) == self.conditional_value

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
