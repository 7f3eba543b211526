"""Pytest configuration for tests."""

import os

# Set test environment before settings are imported
os.environ["ENVIRONMENT"] = "test"
os.environ["ENCRYPTION_KEY"] = "test-encryption-key"
os.environ["API_AUTH_USER"] = "engine"
os.environ["API_AUTH_PASSWORD"] = "engine-secret"
os.environ.pop("DATABASE_URL", None)
os.environ.pop("REDIS_URL", None)

from typing import Any, Dict, List

import pytest

from skillhub.config import Settings
from skillhub.integrations.base import PersonalizedIntegration, PlatformIntegration, tool
from skillhub.integrations.registry import IntegrationRegistry
from skillhub.integrations.schema import CredentialField, ParameterSpec, ToolDefinition
from skillhub.models.instance import IntegrationInstance
from skillhub.services.credentials import CredentialService
from skillhub.services.dispatcher import ToolDispatcher
from skillhub.services.encryption import CredentialCipher
from skillhub.services.instance_store import InMemoryInstanceRepository

ORG = "org-1"
OTHER_ORG = "org-2"
FAKE_CREDENTIALS = {"url": "https://fake.example.com", "token": "super-secret-token"}


class EchoIntegration(PlatformIntegration):
    """Platform tool returning its input."""

    type = "system.echo"
    name = "Echo"

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="echo",
                description="Echo",
                parameters=(ParameterSpec(name="text", type="string", required=True),),
            )
        ]

    @tool("echo")
    async def echo(self, parameters: Dict[str, Any], credentials=None) -> Dict[str, Any]:
        return {"success": True, "text": parameters["text"], "credentials": credentials}


class FakeIntegration(PersonalizedIntegration):
    """Credentialed integration with one working and one failing tool."""

    type = "fake"
    name = "Fake Service"
    prompt_template = "jira.xml.j2"
    instance_url_key = "url"

    def get_credential_fields(self) -> List[CredentialField]:
        return [
            CredentialField(name="url", type="url", label="URL"),
            CredentialField(name="token", type="password", label="Token"),
        ]

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="fake_lookup",
                description="Look something up",
                parameters=(ParameterSpec(name="query", type="string", required=True, description="Query"),),
            ),
            ToolDefinition(name="fake_explode", description="Always fails"),
        ]

    @tool("fake_lookup")
    async def lookup(self, parameters: Dict[str, Any], credentials=None) -> Dict[str, Any]:
        return {"success": True, "query": parameters["query"]}

    @tool("fake_explode")
    async def explode(self, parameters: Dict[str, Any], credentials=None) -> Dict[str, Any]:
        raise RuntimeError(f"upstream rejected token {credentials['token']}")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        encryption_key="test-encryption-key",
        api_auth_user="engine",
        api_auth_password="engine-secret",
        credential_timeout_seconds=1.0,
    )


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher("test-encryption-key")


@pytest.fixture
def echo_integration() -> EchoIntegration:
    return EchoIntegration()


@pytest.fixture
def fake_integration() -> FakeIntegration:
    return FakeIntegration()


@pytest.fixture
def registry(echo_integration, fake_integration) -> IntegrationRegistry:
    return IntegrationRegistry([echo_integration, fake_integration])


@pytest.fixture
def instances(cipher) -> List[IntegrationInstance]:
    encrypted = cipher.encrypt_credentials(FAKE_CREDENTIALS)
    return [
        IntegrationInstance(id=1, organisation_id=ORG, integration_type="fake", name="Fake",
                            encrypted_credentials=encrypted),
        IntegrationInstance(id=2, organisation_id=ORG, integration_type="fake", name="Inactive",
                            encrypted_credentials=encrypted, active=False),
        IntegrationInstance(id=3, organisation_id=ORG, integration_type="fake", name="No credentials"),
        IntegrationInstance(id=4, organisation_id=ORG, integration_type="fake", name="Restricted",
                            encrypted_credentials=encrypted, disabled_tools=["fake_lookup"]),
        IntegrationInstance(id=5, organisation_id=OTHER_ORG, integration_type="fake", name="Foreign",
                            encrypted_credentials=encrypted),
        IntegrationInstance(id=6, organisation_id=ORG, integration_type="removed", name="Orphan",
                            encrypted_credentials=encrypted),
        IntegrationInstance(id=7, organisation_id=ORG, integration_type="system.echo", name="Echo"),
    ]


@pytest.fixture
def repository(instances) -> InMemoryInstanceRepository:
    return InMemoryInstanceRepository(instances)


@pytest.fixture
def credential_service(cipher, repository) -> CredentialService:
    return CredentialService(cipher, repository)


@pytest.fixture
def dispatcher(registry, repository, credential_service, settings) -> ToolDispatcher:
    return ToolDispatcher(registry, repository, credential_service, settings)
