"""HTTP clients used by integration adapters."""

import asyncio
import logging
import time
from typing import Dict, Any, Optional, List

import httpx

from ..errors import AuthenticationError, IntegrationError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window rate limiter for outbound API requests."""

    def __init__(
        self,
        requests_per_minute: Optional[int] = None,
        burst_limit: Optional[int] = None,
        clock=time.monotonic
    ):
        self.requests_per_minute = requests_per_minute
        self.burst_limit = burst_limit
        self.requests: List[float] = []
        self.lock = asyncio.Lock()
        self._clock = clock

    async def acquire(self):
        """Acquire permission to make a request."""
        async with self.lock:
            now = self._clock()
            self._clean_old_requests(now)

            wait_time = self._calculate_wait_time(now)
            if wait_time > 0:
                logger.info(f"Rate limit hit, waiting {wait_time:.2f} seconds")
                await asyncio.sleep(wait_time)
                now = self._clock()
                self._clean_old_requests(now)

            self.requests.append(now)

    def _clean_old_requests(self, now: float):
        cutoff = now - 60
        self.requests = [req_time for req_time in self.requests if req_time > cutoff]

    def _calculate_wait_time(self, now: float) -> float:
        """Calculate how long to wait before the next request."""
        wait_times = []

        if self.requests_per_minute and len(self.requests) >= self.requests_per_minute:
            wait_times.append(self.requests[-self.requests_per_minute] + 60 - now)

        if self.burst_limit:
            recent = [req for req in self.requests if req > now - 10]
            if len(recent) >= self.burst_limit:
                wait_times.append(recent[-self.burst_limit] + 10 - now)

        return max(wait_times) if wait_times else 0


class HTTPClient:
    """Async REST client that turns HTTP failures into IntegrationError.

    ``service`` names the upstream in error context. A ``transport`` may be
    injected (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        service: str,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[httpx.Auth] = None,
        params: Optional[Dict[str, str]] = None,
        timeout: float = 30.0,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.service = service
        self.default_headers = headers or {}
        self.auth = auth
        self.default_params = params or {}
        self.timeout = timeout
        self.rate_limiter = rate_limiter
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_client(self):
        if not self.client:
            self.client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.default_headers,
                auth=self.auth,
                timeout=self.timeout,
                transport=self.transport
            )

    async def close(self):
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Make an HTTP request with rate limiting and error handling."""
        await self._ensure_client()

        if self.rate_limiter:
            await self.rate_limiter.acquire()

        if self.default_params:
            kwargs['params'] = {**self.default_params, **kwargs.get('params', {})}

        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise IntegrationError(
                "Request timeout",
                service=self.service,
                operation=method.upper(),
                original_error=e
            )
        except httpx.TransportError as e:
            raise IntegrationError(
                f"Network error: {type(e).__name__}",
                service=self.service,
                operation=method.upper(),
                original_error=e
            )

        if response.status_code >= 400:
            self._handle_error_response(method, response)

        return response

    def _handle_error_response(self, method: str, response: httpx.Response):
        """Raise the error matching an HTTP failure response."""
        error_message = f"HTTP {response.status_code}"
        try:
            error_data = response.json()
        except ValueError:
            error_data = None

        if isinstance(error_data, dict):
            messages = error_data.get('errorMessages')
            if messages:
                error_message = "; ".join(str(m) for m in messages)
            else:
                error_message = str(error_data.get('message', error_data.get('error', error_message)))
        elif response.text:
            error_message = response.text[:200]

        if response.status_code == 401:
            raise IntegrationError(
                f"Authentication failed: {error_message}",
                service=self.service,
                operation=method.upper(),
                status_code=response.status_code
            )
        elif response.status_code == 403:
            raise IntegrationError(
                f"Permission denied: {error_message}",
                service=self.service,
                operation=method.upper(),
                status_code=response.status_code
            )
        elif response.status_code == 429:
            raise IntegrationError(
                f"Rate limit exceeded: {error_message}",
                service=self.service,
                operation=method.upper(),
                status_code=response.status_code
            )
        raise IntegrationError(
            f"API error: {error_message}",
            service=self.service,
            operation=method.upper(),
            status_code=response.status_code
        )

    async def get(self, path: str, **kwargs) -> Any:
        """GET and decode a JSON body."""
        response = await self.request('GET', path, **kwargs)
        return response.json()

    async def post(self, path: str, **kwargs) -> Any:
        """POST and decode a JSON body (empty bodies decode to ``{}``)."""
        response = await self.request('POST', path, **kwargs)
        return response.json() if response.content else {}

    async def put(self, path: str, **kwargs) -> Any:
        response = await self.request('PUT', path, **kwargs)
        return response.json() if response.content else {}


def bearer_client(base_url: str, service: str, access_token: str, **kwargs) -> HTTPClient:
    """Client authenticating with an OAuth access token."""
    if not access_token:
        raise AuthenticationError("Missing OAuth access token", service=service)
    headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
    return HTTPClient(base_url, service, headers=headers, **kwargs)


def basic_client(base_url: str, service: str, username: str, password: str, **kwargs) -> HTTPClient:
    """Client authenticating with HTTP basic credentials."""
    return HTTPClient(
        base_url,
        service,
        headers={"Accept": "application/json"},
        auth=httpx.BasicAuth(username, password),
        **kwargs
    )
