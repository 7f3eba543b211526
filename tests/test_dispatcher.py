"""Tests for tool dispatch."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from conftest import FAKE_CREDENTIALS, ORG
from skillhub.errors import (
    CredentialsMissingError,
    DecryptionFailedError,
    InstanceInactiveError,
    InstanceNotFoundError,
    InvalidParametersError,
    ToolDisabledError,
    ToolExecutionError,
    UnknownIntegrationTypeError,
    UnknownToolError,
)
from skillhub.errors.handlers import REDACTED
from skillhub.integrations.oauth import OAuthTokenManager
from skillhub.integrations.registry import IntegrationRegistry
from skillhub.integrations.user import JiraIntegration
from skillhub.models.instance import IntegrationInstance
from skillhub.services.credentials import CredentialService
from skillhub.services.dispatcher import ToolDispatcher, parse_tool_id
from skillhub.services.instance_store import InMemoryInstanceRepository


@pytest.fixture
def spied(fake_integration, credential_service):
    """Replace adapter execution and credential loading with spies."""
    fake_integration.execute_tool = AsyncMock(return_value={"success": True})
    credential_service.refresh_if_needed = AsyncMock(return_value=dict(FAKE_CREDENTIALS))
    return fake_integration.execute_tool, credential_service.refresh_if_needed


@pytest.mark.asyncio
async def test_dispatch_executes_with_decrypted_credentials(dispatcher, fake_integration, repository):
    """The adapter runs once with the decrypted map and the organisation context."""
    fake_integration.execute_tool = AsyncMock(return_value={"success": True, "issues": []})

    result = await dispatcher.dispatch(ORG, 1, "fake_lookup", {"query": "bug"}, workflow_user_id="wf-1")

    assert result == {"success": True, "issues": []}
    fake_integration.execute_tool.assert_awaited_once_with(
        "fake_lookup",
        {"query": "bug", "organisationId": ORG, "workflowUserId": "wf-1"},
        FAKE_CREDENTIALS,
    )
    assert (await repository.get(1)).last_accessed_at is not None


@pytest.mark.asyncio
async def test_dispatch_runs_the_tool_handler(dispatcher):
    result = await dispatcher.dispatch(ORG, 1, "fake_lookup", {"query": "bug"})

    assert result == {"success": True, "query": "bug"}


@pytest.mark.asyncio
@pytest.mark.parametrize("instance_id", [99, 5])
async def test_missing_and_foreign_instances_look_the_same(dispatcher, spied, instance_id):
    """Another organisation's instance is reported as not found."""
    execute, refresh = spied

    with pytest.raises(InstanceNotFoundError) as exc_info:
        await dispatcher.dispatch(ORG, instance_id, "fake_lookup", {"query": "bug"})

    assert exc_info.value.error_code == "NOT_FOUND"
    refresh.assert_not_awaited()
    execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_inactive_instance_is_checked_before_the_tool(dispatcher, spied):
    execute, refresh = spied

    with pytest.raises(InstanceInactiveError):
        await dispatcher.dispatch(ORG, 2, "no_such_tool", {})

    refresh.assert_not_awaited()
    execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_disabled_tool_is_rejected(dispatcher, spied):
    execute, refresh = spied

    with pytest.raises(ToolDisabledError) as exc_info:
        await dispatcher.dispatch(ORG, 4, "fake_lookup", {"query": "bug"})

    assert exc_info.value.status_code == 403
    refresh.assert_not_awaited()
    execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_other_tools_of_a_restricted_instance_still_run(dispatcher, spied):
    execute, _ = spied

    await dispatcher.dispatch(ORG, 4, "fake_explode", {})

    execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_unregistered_integration_type(dispatcher, spied):
    with pytest.raises(UnknownIntegrationTypeError) as exc_info:
        await dispatcher.dispatch(ORG, 6, "fake_lookup", {"query": "bug"})

    assert exc_info.value.integration_type == "removed"
    spied[1].assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_tool(dispatcher, spied):
    with pytest.raises(UnknownToolError):
        await dispatcher.dispatch(ORG, 1, "fake_delete_everything", {})

    spied[1].assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_credentials(dispatcher, spied):
    execute, _ = spied

    with pytest.raises(CredentialsMissingError) as exc_info:
        await dispatcher.dispatch(ORG, 3, "fake_lookup", {"query": "bug"})

    assert exc_info.value.status_code == 400
    execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_tampered_credentials_never_reach_the_adapter(dispatcher, fake_integration, repository):
    fake_integration.execute_tool = AsyncMock()
    await repository.save(IntegrationInstance(
        id=8, organisation_id=ORG, integration_type="fake", encrypted_credentials="gAAAAABtampered"
    ))

    with pytest.raises(DecryptionFailedError) as exc_info:
        await dispatcher.dispatch(ORG, 8, "fake_lookup", {"query": "bug"})

    assert "gAAAAABtampered" not in exc_info.value.message
    fake_integration.execute_tool.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_required_parameter(dispatcher):
    with pytest.raises(InvalidParametersError) as exc_info:
        await dispatcher.dispatch(ORG, 1, "fake_lookup", {"query": ""})

    assert exc_info.value.missing == ["query"]


@pytest.mark.asyncio
async def test_unexpected_failure_is_wrapped_and_redacted(dispatcher, repository):
    """Adapter crashes become execution errors without credential values."""
    with pytest.raises(ToolExecutionError) as exc_info:
        await dispatcher.dispatch(ORG, 1, "fake_explode", {})

    error = exc_info.value
    assert "super-secret-token" not in error.message
    assert REDACTED in error.message
    assert isinstance(error.__cause__, RuntimeError)
    assert error.status_code == 502
    assert (await repository.get(1)).last_accessed_at is None


@pytest.mark.asyncio
async def test_audit_events(registry, repository, credential_service, settings):
    audit = MagicMock()
    dispatcher = ToolDispatcher(registry, repository, credential_service, settings, audit=audit)

    await dispatcher.dispatch(ORG, 1, "fake_lookup", {"query": "bug"})
    with pytest.raises(ToolExecutionError):
        await dispatcher.dispatch(ORG, 1, "fake_explode", {})

    assert audit.tool_started.call_count == 2
    audit.tool_completed.assert_called_once()
    audit.tool_failed.assert_called_once()


@pytest.mark.asyncio
async def test_platform_tool_never_touches_credentials(registry, repository, settings):
    cipher = MagicMock()
    dispatcher = ToolDispatcher(registry, repository, CredentialService(cipher, repository), settings)

    result = await dispatcher.dispatch_platform(ORG, "echo", {"text": "hi"})

    assert result["text"] == "hi"
    assert result["credentials"] is None
    cipher.decrypt_credentials.assert_not_called()
    cipher.decrypt.assert_not_called()


@pytest.mark.asyncio
async def test_platform_tool_honours_disabled_tools(registry, credential_service, settings):
    repository = InMemoryInstanceRepository([
        IntegrationInstance(id=1, organisation_id=ORG, integration_type="system.echo", disabled_tools=["echo"])
    ])
    dispatcher = ToolDispatcher(registry, repository, credential_service, settings)

    with pytest.raises(ToolDisabledError):
        await dispatcher.dispatch_platform(ORG, "echo", {"text": "hi"})

    # Other organisations are unaffected
    result = await dispatcher.dispatch_platform("org-3", "echo", {"text": "hi"})
    assert result["success"] is True


@pytest.mark.asyncio
async def test_bare_tool_names_only_resolve_platform_tools(dispatcher):
    with pytest.raises(UnknownToolError):
        await dispatcher.dispatch_platform(ORG, "fake_lookup", {"query": "bug"})


@pytest.mark.asyncio
async def test_platform_dispatch_of_credentialed_type(dispatcher):
    with pytest.raises(CredentialsMissingError):
        await dispatcher.dispatch_platform(ORG, "fake_lookup", {"query": "bug"}, integration_type="fake")


@pytest.mark.asyncio
async def test_execute_tool_id_routes_by_suffix(dispatcher):
    instance_result = await dispatcher.execute_tool_id(ORG, "fake_lookup_1", {"query": "bug"})
    platform_result = await dispatcher.execute_tool_id(ORG, "echo", {"text": "hi"})

    assert instance_result == {"success": True, "query": "bug"}
    assert platform_result["text"] == "hi"


@pytest.mark.parametrize("tool_id,expected", [
    ("jira_search_12", ("jira_search", 12)),
    ("trello_create_card_3", ("trello_create_card", 3)),
    ("SearXNG_tool", ("SearXNG_tool", None)),
    ("read_page_tool", ("read_page_tool", None)),
    ("_7", ("_7", None)),
])
def test_parse_tool_id(tool_id, expected):
    assert parse_tool_id(tool_id) == expected


@pytest.mark.asyncio
async def test_garbled_token_refresh_runs_with_stale_token(cipher, settings):
    """A token endpoint answering 200 with junk leaves the stored token in use."""
    requests = []

    def handler(request):
        requests.append(request)
        if request.url.path == "/oauth/token":
            return httpx.Response(200, text="oops")
        return httpx.Response(200, json={"accountId": "abc"})

    transport = httpx.MockTransport(handler)
    token_manager = OAuthTokenManager(
        "https://auth.example.com/oauth/token", "client-id", "client-secret",
        service="atlassian", transport=transport,
    )
    credentials = {
        "auth_mode": "oauth",
        "cloud_id": "cloud-1",
        "access_token": "old-access",
        "refresh_token": "refresh-1",
        "expires_at": 1,
    }
    instance = IntegrationInstance(id=1, organisation_id=ORG, integration_type="jira", name="Jira",
                                   encrypted_credentials=cipher.encrypt_credentials(credentials))
    repository = InMemoryInstanceRepository([instance])
    registry = IntegrationRegistry([JiraIntegration(token_manager=token_manager, transport=transport)])
    dispatcher = ToolDispatcher(registry, repository, CredentialService(cipher, repository), settings)

    result = await dispatcher.dispatch(ORG, 1, "jira_get_myself", {})

    assert result == {"accountId": "abc"}
    assert [r.url.path for r in requests] == ["/oauth/token", "/ex/jira/cloud-1/rest/api/3/myself"]
    assert requests[-1].headers["authorization"] == "Bearer old-access"
    stored = await repository.get(1)
    assert cipher.decrypt_credentials(stored.encrypted_credentials) == credentials
