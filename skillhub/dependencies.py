"""Service container and FastAPI dependency providers."""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .config import Settings, get_settings
from .integrations.catalog import build_default_registry
from .integrations.export import CatalogExporter
from .integrations.oauth import TokenCache
from .integrations.registry import IntegrationRegistry
from .services.audit import AuditLogger
from .services.credentials import CredentialService
from .services.database import DatabaseService
from .services.dispatcher import ToolDispatcher
from .services.encryption import CredentialCipher
from .services.instance_store import (
    InMemoryInstanceRepository,
    InstanceRepository,
    PostgresInstanceRepository,
)
from .services.tool_provider import ToolProviderService

logger = logging.getLogger(__name__)

security = HTTPBasic(auto_error=False)


class SkillHubServices:
    """Explicitly wired services shared by all requests."""

    def __init__(
        self,
        settings: Settings,
        registry: IntegrationRegistry,
        repository: InstanceRepository,
        cipher: CredentialCipher,
        db_service: Optional[DatabaseService] = None,
        token_cache: Optional[TokenCache] = None
    ):
        self.settings = settings
        self.registry = registry
        self.repository = repository
        self.cipher = cipher
        self.db_service = db_service
        self.token_cache = token_cache

        self.credentials = CredentialService(cipher, repository)
        self.dispatcher = ToolDispatcher(registry, repository, self.credentials, settings, AuditLogger())
        self.tool_provider = ToolProviderService(registry, repository, cipher)
        self.exporter = CatalogExporter()

    @classmethod
    async def create(cls, settings: Optional[Settings] = None) -> "SkillHubServices":
        """Connect to configured backing services and build the registry."""
        settings = settings or get_settings()

        db_service = None
        if settings.database_url:
            logger.info("Initializing database connection...")
            db_service = await DatabaseService.create(settings)
            repository: InstanceRepository = PostgresInstanceRepository(db_service)
        else:
            logger.warning("DATABASE_URL not set; using in-memory integration instances")
            repository = InMemoryInstanceRepository()

        token_cache = None
        if settings.redis_url:
            token_cache = TokenCache.from_url(settings.redis_url)

        return cls(
            settings=settings,
            registry=build_default_registry(settings, token_cache),
            repository=repository,
            cipher=CredentialCipher.from_settings(settings),
            db_service=db_service,
            token_cache=token_cache,
        )

    async def close(self):
        """Close all connections."""
        if self.db_service:
            await self.db_service.close()
        if self.token_cache:
            await self.token_cache.close()


def get_services(request: Request) -> SkillHubServices:
    return request.app.state.services


def get_registry(services: SkillHubServices = Depends(get_services)) -> IntegrationRegistry:
    return services.registry


def get_dispatcher(services: SkillHubServices = Depends(get_services)) -> ToolDispatcher:
    return services.dispatcher


def get_tool_provider(services: SkillHubServices = Depends(get_services)) -> ToolProviderService:
    return services.tool_provider


def get_exporter(services: SkillHubServices = Depends(get_services)) -> CatalogExporter:
    return services.exporter


def verify_service_credentials(
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
    services: SkillHubServices = Depends(get_services)
) -> str:
    """Check the agent engine's HTTP basic credentials."""
    settings = services.settings
    valid = credentials is not None and (
        secrets.compare_digest(credentials.username.encode(), settings.api_auth_user.encode())
        & secrets.compare_digest(credentials.password.encode(), settings.api_auth_password.encode())
    )
    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
