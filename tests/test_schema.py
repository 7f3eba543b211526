"""Tests for tool and credential schema models."""

import pytest
from pydantic import ValidationError

from skillhub.integrations.schema import CredentialField, ParameterSpec, ToolDefinition


def test_parameter_defaults_to_optional_string():
    """A bare parameter is an optional string."""
    param = ParameterSpec(name="query")

    assert param.type == "string"
    assert param.required is False
    assert param.to_dict() == {"name": "query", "type": "string", "required": False}


def test_tool_rejects_blank_description():
    with pytest.raises(ValidationError):
        ToolDefinition(name="blank", description="   ")


def test_tool_rejects_duplicate_parameter_names():
    with pytest.raises(ValidationError):
        ToolDefinition(
            name="dup",
            description="Duplicate parameters",
            parameters=[ParameterSpec(name="a"), ParameterSpec(name="a", type="integer")],
        )


def test_function_schema_lists_required_parameters_in_order():
    """Function schemas keep parameter order and required flags."""
    definition = ToolDefinition(
        name="jira_search",
        description="Search issues",
        parameters=[
            ParameterSpec(name="jql", required=True, description="JQL query"),
            ParameterSpec(name="maxResults", type="integer"),
        ],
    )

    schema = definition.to_function_schema()

    assert list(schema["properties"]) == ["jql", "maxResults"]
    assert schema["properties"]["maxResults"] == {"type": "integer", "description": ""}
    assert schema["required"] == ["jql"]
    assert definition.get_parameter("jql").required is True
    assert definition.get_parameter("missing") is None


def test_select_field_requires_options():
    with pytest.raises(ValidationError):
        CredentialField(name="auth_mode", type="select", label="Mode")


def test_conditional_field_applies_only_for_matching_value():
    field = CredentialField(
        name="api_token",
        type="password",
        label="API token",
        conditional_on="auth_mode",
        conditional_value="api_token",
    )

    assert field.applies_to({"auth_mode": "api_token"})
    assert not field.applies_to({"auth_mode": "oauth"})
    assert not field.applies_to({})
