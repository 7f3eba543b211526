"""Shared authentication for Atlassian Cloud integrations."""

import logging
from typing import Any, ClassVar, Dict, List, Mapping, Optional

import httpx

from ..base import PersonalizedIntegration
from ..clients import HTTPClient, basic_client, bearer_client
from ..oauth import OAuthTokenManager
from ..schema import CredentialField

logger = logging.getLogger(__name__)

ATLASSIAN_API_URL = "https://api.atlassian.com/ex"
AUTH_MODES = {
    "api_token": "API Token (Personal)",
    "oauth": "OAuth 2.0 (Recommended)",
}


class AtlassianIntegration(PersonalizedIntegration):
    """Jira and Confluence authenticate with an API token or Atlassian OAuth.

    OAuth credentials carry ``access_token``, ``refresh_token``, ``expires_at``
    and the site's ``cloud_id``; requests then go through the Atlassian API
    gateway instead of the site URL.
    """

    product: ClassVar[str]
    instance_url_key = "url"

    def __init__(
        self,
        app_url: str = "http://localhost:8000",
        token_manager: Optional[OAuthTokenManager] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.token_manager = token_manager
        self.timeout = timeout
        self.transport = transport
        super().__init__(app_url)

    def get_credential_fields(self) -> List[CredentialField]:
        return [
            CredentialField(
                name="auth_mode",
                type="select",
                label="Authentication Mode",
                placeholder="api_token",
                required=True,
                description=f"Choose how to authenticate with {self.name}",
                options=AUTH_MODES,
            ),
            CredentialField(
                name="url",
                type="url",
                label=f"{self.name} URL",
                placeholder="https://your-domain.atlassian.net",
                description=f"Your {self.name} instance URL",
                conditional_on="auth_mode",
                conditional_value="api_token",
            ),
            CredentialField(
                name="username",
                type="email",
                label="Email",
                placeholder="your-email@example.com",
                description=f"Email address associated with your {self.name} account",
                conditional_on="auth_mode",
                conditional_value="api_token",
            ),
            CredentialField(
                name="api_token",
                type="password",
                label="API Token",
                description=f"Your {self.name} API token (not your password)",
                conditional_on="auth_mode",
                conditional_value="api_token",
            ),
            CredentialField(
                name="oauth_atlassian",
                type="oauth",
                label="Connect with Atlassian",
                required=False,
                description=f"Authorize via Atlassian to access {self.name}",
                conditional_on="auth_mode",
                conditional_value="oauth",
            ),
        ]

    def credential_errors(self, credentials: Mapping[str, Any]) -> List[str]:
        # Configurations predating OAuth support carry no auth_mode
        return super().credential_errors({"auth_mode": "api_token", **credentials})

    @staticmethod
    def auth_mode(credentials: Mapping[str, Any]) -> str:
        return credentials.get("auth_mode") or "api_token"

    async def prepare_credentials(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        if self.auth_mode(credentials) != "oauth" or self.token_manager is None:
            return credentials
        logger.debug(f"{self.name} OAuth: ensuring valid access token")
        return await self.token_manager.ensure_valid_token(credentials)

    def client(self, credentials: Optional[Dict[str, Any]]) -> HTTPClient:
        """HTTP client for the site the credentials point at."""
        credentials = credentials or {}
        kwargs = {"timeout": self.timeout, "transport": self.transport}

        if self.auth_mode(credentials) == "oauth":
            base_url = f"{ATLASSIAN_API_URL}/{self.product}/{credentials.get('cloud_id', '')}"
            return bearer_client(base_url, self.type, credentials.get("access_token", ""), **kwargs)

        return basic_client(
            credentials.get("url", ""),
            self.type,
            credentials.get("username", ""),
            credentials.get("api_token", ""),
            **kwargs
        )
