"""Tests for error payloads and secret redaction."""

from skillhub.errors import (
    ErrorHandler,
    InstanceNotFoundError,
    IntegrationError,
    ToolDisabledError,
    error_payload,
    redact_secrets,
    sanitize_data,
)
from skillhub.errors.handlers import REDACTED


def test_redact_secrets_removes_nested_values():
    credentials = {"api_token": "tok-123456", "nested": {"secret": "abcdefgh"}, "mode": "oauth"}

    message = redact_secrets("failed with tok-123456 and abcdefgh in oauth mode", credentials)

    assert message == f"failed with {REDACTED} and {REDACTED} in oauth mode"


def test_redact_secrets_without_credentials():
    assert redact_secrets("plain", None) == "plain"


def test_sanitize_data_masks_sensitive_keys():
    data = {"query": "bug", "apiToken": "x", "auth": {"password": "y", "user": "z"}}

    assert sanitize_data(data) == {"query": "bug", "apiToken": REDACTED, "auth": {"password": REDACTED, "user": "z"}}


def test_error_payload_for_lookup_error():
    payload = error_payload(InstanceNotFoundError(12))

    assert payload == {
        "success": False,
        "error": "NOT_FOUND",
        "message": "Integration instance 12 not found",
        "error_code": "NOT_FOUND",
        "status_code": 404,
        "context": {"instance_id": 12},
        "hint": "Resource not found - verify the ID/key exists",
    }


def test_error_payload_for_upstream_server_error():
    payload = error_payload(IntegrationError("boom", service="jira", operation="GET", status_code=503))

    assert payload["status_code"] == 503
    assert payload["message"].startswith("Server Error (HTTP 503)")


def test_error_handler_counts():
    handler = ErrorHandler()

    handler.handle_error(ToolDisabledError("jira_search", 1))
    handler.handle_error(ToolDisabledError("jira_search", 2))

    assert handler.get_error_stats() == {
        "error_counts": {"authorization:TOOL_DISABLED": 2},
        "total_errors": 2,
        "categories": ["authorization"],
    }
