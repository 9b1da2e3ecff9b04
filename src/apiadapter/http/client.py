"""
HTTP client and client factory using aiohttp.

The factory owns the pooled aiohttp.ClientSession. Each exchange gets its own
HttpClient carrying the per-adapter configuration (base address, default
headers, optional timeout), so concurrent calls never share mutable client
state.
"""

import logging
import time
from urllib.parse import urljoin

import aiohttp
from multidict import CIMultiDict

from apiadapter.http.headers import ResponseHeaderMap
from apiadapter.http.models import ApiResponse, HttpRequest

logger = logging.getLogger(__name__)


class HttpClient:
    """Single-exchange client bound to a (usually shared) aiohttp session."""

    def __init__(self, session: aiohttp.ClientSession, owns_session: bool = False):
        self._session = session
        self._owns_session = owns_session
        self.base_url: str | None = None
        self.headers: CIMultiDict = CIMultiDict()
        self.timeout: float | None = None

    def resolve_url(self, path: str) -> str:
        """Resolve a relative request path against base_url."""
        if not self.base_url:
            return path
        return urljoin(self.base_url, path)

    async def send(self, request: HttpRequest) -> ApiResponse:
        """
        Send one request and read the whole response body.

        Request headers are sent as given, repeated names included. A default
        header is only added when the request carries no header of that name.
        Status codes are not interpreted here.

        Raises:
            aiohttp.ClientError: Transport failures
            asyncio.TimeoutError: When self.timeout elapses
        """
        url = self.resolve_url(request.url)
        headers = CIMultiDict(request.headers)
        for key, value in self.headers.items():
            if key not in request.headers:
                headers.add(key, value)

        kwargs = {}
        if self.timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=self.timeout)

        start = time.perf_counter()
        async with self._session.request(
            request.method,
            url,
            headers=headers,
            data=request.content,
            **kwargs,
        ) as response:
            content = await response.read()
            api_response = ApiResponse(
                status_code=response.status,
                headers=ResponseHeaderMap.from_headers(response.headers),
                content=content,
                reason=response.reason,
                url=str(response.url),
                charset=response.charset,
            )

        logger.debug(
            "HTTP %s %s -> %d",
            request.method,
            url,
            api_response.status_code,
            extra={
                "http_method": request.method,
                "http_url": url,
                "http_status": api_response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return api_response

    async def close(self) -> None:
        if self._owns_session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class SessionClientFactory:
    """
    Hands out HttpClient instances backed by one pooled aiohttp session.

    Connection pool configuration:
    - max_connections: Total concurrent connections across all hosts
    - max_connections_per_host: Concurrent connections to single host
    - enable_ssl: SSL verification (disable only for testing)

    Timeouts are left to the clients: adapters set a per-client timeout or
    wrap attempts in a timeout policy.

    Example:
        async with SessionClientFactory() as factory:
            adapter = ApiAdapter(config, factory)
            widget = await adapter.get("widgets/5", Widget)
    """

    def __init__(
        self,
        max_connections: int = 100,
        max_connections_per_host: int = 10,
        enable_ssl: bool = True,
        session: aiohttp.ClientSession | None = None,
    ):
        self.max_connections = max_connections
        self.max_connections_per_host = max_connections_per_host
        self.enable_ssl = enable_ssl
        self._session = session

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections_per_host,
                ssl=self.enable_ssl,
                ttl_dns_cache=300,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=None),
            )
        return self._session

    def create_client(self) -> HttpClient:
        return HttpClient(self._ensure_session())

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "SessionClientFactory":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


__all__ = ["HttpClient", "SessionClientFactory"]
