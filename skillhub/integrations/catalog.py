"""Bundled integrations and the application's default registry.

Adding an integration means adding one entry to ``DEFAULT_INTEGRATIONS``.
"""

import logging
from typing import Callable, List, Optional

from .base import Integration
from .oauth import OAuthTokenManager, TokenCache
from .registry import IntegrationRegistry
from .system import (
    IssueReportingIntegration,
    MemoryManagementIntegration,
    ShareFileIntegration,
    WebPageReaderIntegration,
    WebSearchIntegration,
)
from .user import ConfluenceIntegration, JiraIntegration, TrelloIntegration
from ..config import Settings

logger = logging.getLogger(__name__)

IntegrationFactory = Callable[[Settings, Optional[OAuthTokenManager]], Integration]


def atlassian_token_manager(settings: Settings, cache: Optional[TokenCache] = None) -> OAuthTokenManager:
    return OAuthTokenManager(
        token_url=settings.atlassian_token_url,
        client_id=settings.atlassian_client_id,
        client_secret=settings.atlassian_client_secret,
        service="atlassian",
        threshold_seconds=settings.token_refresh_threshold_seconds,
        timeout=settings.oauth_timeout_seconds,
        cache=cache,
    )


DEFAULT_INTEGRATIONS: List[IntegrationFactory] = [
    # Platform tools
    lambda s, _: WebSearchIntegration(s.searxng_url, timeout=s.http_timeout_seconds),
    lambda s, _: WebPageReaderIntegration(timeout=s.http_timeout_seconds),
    lambda s, _: ShareFileIntegration(s.file_storage_dir, s.app_url, s.encryption_key, s.file_url_ttl_seconds),
    lambda s, _: MemoryManagementIntegration(),
    lambda s, _: IssueReportingIntegration(),
    # Personalized skills
    lambda s, tm: JiraIntegration(s.app_url, token_manager=tm, timeout=s.http_timeout_seconds),
    lambda s, tm: ConfluenceIntegration(s.app_url, token_manager=tm, timeout=s.http_timeout_seconds),
    lambda s, _: TrelloIntegration(
        s.app_url,
        requests_per_minute=s.trello_requests_per_minute,
        timeout=s.http_timeout_seconds,
    ),
]


def build_default_registry(
    settings: Settings,
    token_cache: Optional[TokenCache] = None
) -> IntegrationRegistry:
    """Build the registry of bundled integrations, failing on duplicate types."""
    token_manager = None
    if settings.atlassian_client_id and settings.atlassian_client_secret:
        token_manager = atlassian_token_manager(settings, token_cache)
    else:
        logger.info("Atlassian OAuth not configured; OAuth-mode instances will use stored tokens as-is")

    return IntegrationRegistry(
        (factory(settings, token_manager) for factory in DEFAULT_INTEGRATIONS),
        strict=True,
    )
