"""Configuration management for the SkillHub tool registry."""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: str = Field("development", description="Deployment environment")
    debug: bool = Field(False, description="Enable debug mode")
    log_level: str = Field("INFO", description="Root log level")

    # Persistence
    database_url: Optional[str] = Field(None, description="PostgreSQL DSN for integration configs")
    database_min_pool_size: int = 1
    database_max_pool_size: int = 10
    redis_url: Optional[str] = Field(None, description="Redis URL for the OAuth token cache")

    # Credential encryption
    encryption_key: str = Field(..., description="Secret used to derive the credential encryption key")
    encryption_salt: str = Field("skillhub-credentials-v1", description="KDF salt for the encryption key")

    # Service credentials for the agent engine
    api_auth_user: str = Field("skillhub", description="Basic auth user for the integration API")
    api_auth_password: str = Field(..., description="Basic auth password for the integration API")

    # Public application URL (used in agent system prompts and signed links)
    app_url: str = Field("http://localhost:8000", description="Public base URL")

    # CORS
    allowed_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Timeouts and credential lifecycle
    credential_timeout_seconds: float = Field(5.0, description="Budget for decrypt + token refresh")
    oauth_timeout_seconds: float = Field(5.0, description="Timeout for token refresh requests")
    token_refresh_threshold_seconds: int = Field(300, description="Refresh tokens expiring sooner than this")
    http_timeout_seconds: float = Field(30.0, description="Default timeout for adapter HTTP calls")

    # Platform tools
    searxng_url: Optional[str] = Field(None, description="SearXNG instance for web search")
    file_storage_dir: str = Field("var/shared-files", description="Storage root for shared files")
    file_url_ttl_seconds: int = Field(7 * 24 * 3600, description="Lifetime of signed file URLs")

    # Personalized integrations
    atlassian_client_id: Optional[str] = None
    atlassian_client_secret: Optional[str] = None
    atlassian_token_url: str = "https://auth.atlassian.com/oauth/token"
    trello_requests_per_minute: int = 100


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
