"""OAuth 2.0 token refresh for personalized integrations."""

import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx
import redis.asyncio as redis

from ..errors import AuthenticationError

logger = logging.getLogger(__name__)


class TokenCache:
    """Redis-backed cache of refreshed access tokens."""

    prefix = "skillhub:oauth:"

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "TokenCache":
        return cls(redis.from_url(url, encoding="utf-8", decode_responses=True))

    @classmethod
    def key_for(cls, refresh_token: str) -> str:
        return cls.prefix + hashlib.sha256(refresh_token.encode()).hexdigest()

    async def get(self, refresh_token: str) -> Optional[Dict[str, Any]]:
        try:
            value = await self.client.get(self.key_for(refresh_token))
        except redis.RedisError as e:
            logger.warning(f"Token cache read failed: {e}")
            return None
        if not value:
            return None
        try:
            tokens = json.loads(value)
        except ValueError:
            logger.warning("Token cache entry is not valid JSON; ignoring it")
            return None
        return tokens if isinstance(tokens, dict) else None

    async def set(self, refresh_token: str, tokens: Dict[str, Any], ttl: int):
        if ttl <= 0:
            return
        try:
            await self.client.set(self.key_for(refresh_token), json.dumps(tokens), ex=ttl)
        except redis.RedisError as e:
            logger.warning(f"Token cache write failed: {e}")

    async def close(self):
        await self.client.aclose()


class OAuthTokenManager:
    """Keeps OAuth access tokens in credential maps fresh.

    Credentials carry ``access_token``, ``refresh_token`` and ``expires_at``
    (unix seconds). A token expiring within ``threshold_seconds`` is refreshed
    with a ``refresh_token`` grant against ``token_url``.
    """

    def __init__(
        self,
        token_url: str,
        client_id: Optional[str],
        client_secret: Optional[str],
        service: str = "oauth",
        threshold_seconds: int = 300,
        timeout: float = 5.0,
        cache: Optional[TokenCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time
    ):
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.service = service
        self.threshold_seconds = threshold_seconds
        self.timeout = timeout
        self.cache = cache
        self.transport = transport
        self.clock = clock

    def needs_refresh(self, credentials: Dict[str, Any]) -> bool:
        if not credentials.get("refresh_token"):
            return False
        # A missing or unreadable expiry counts as expired
        try:
            expires_at = float(credentials.get("expires_at") or 0)
        except (TypeError, ValueError):
            expires_at = 0.0
        return expires_at - self.clock() < self.threshold_seconds

    async def refresh(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        """Exchange the refresh token for a new access token.

        Raises:
            AuthenticationError: the provider rejected or did not answer the grant
        """
        refresh_token = credentials["refresh_token"]

        if self.cache is not None:
            cached = await self.cache.get(refresh_token)
            if cached and not self.needs_refresh({"refresh_token": refresh_token, **cached}):
                logger.debug(f"Using cached {self.service} access token")
                return {**credentials, **cached}

        payload = {
            "grant_type": "refresh_token",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": refresh_token,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.token_url, json=payload)
        except httpx.HTTPError as e:
            raise AuthenticationError(
                f"Token refresh request failed: {type(e).__name__}",
                service=self.service,
                original_error=e
            )

        if response.status_code != 200:
            raise AuthenticationError(
                f"Token refresh rejected with HTTP {response.status_code}",
                service=self.service
            )

        try:
            tokens = response.json()
            access_token = tokens.get("access_token")
            expires_in = int(tokens.get("expires_in", 3600))
        except (ValueError, TypeError, AttributeError) as e:
            raise AuthenticationError(
                f"Token refresh response is malformed: {type(e).__name__}",
                service=self.service,
                original_error=e
            )
        if not access_token:
            raise AuthenticationError("Token refresh response has no access_token", service=self.service)

        refreshed = {
            "access_token": access_token,
            "expires_at": int(self.clock()) + expires_in,
        }
        if tokens.get("refresh_token"):
            refreshed["refresh_token"] = tokens["refresh_token"]

        if self.cache is not None:
            await self.cache.set(refresh_token, refreshed, expires_in - self.threshold_seconds)

        logger.info(f"Refreshed {self.service} access token")
        return {**credentials, **refreshed}

    async def ensure_valid_token(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        """Return credentials with a usable access token.

        Refresh failures are logged and the stale credentials returned.
        """
        if not self.needs_refresh(credentials):
            return credentials

        try:
            return await self.refresh(credentials)
        except AuthenticationError as e:
            logger.warning(f"Keeping stale {self.service} credentials: {e.message}")
            return credentials
