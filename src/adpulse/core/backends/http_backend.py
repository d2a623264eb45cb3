"""
HTTP Backend implementation using httpx.

Provides async Graph API calls with:
- Persistent connection pooling
- A fixed per-request timeout
- Graph error payload decoding
- No automatic retry (callers decide)
"""

from __future__ import annotations

import logging
import time

import httpx
import orjson

from adpulse import __app_name__, __version__
from adpulse.core.errors import UpstreamError

from .base import Backend, FetchResult, RequestSpec

logger = logging.getLogger(__name__)


def _describe_error(payload: object) -> tuple[str | None, int | None]:
    """Pull ``error.message`` and ``error.code`` out of a Graph error body."""
    if not isinstance(payload, dict):
        return None, None
    error = payload.get("error")
    if not isinstance(error, dict):
        return None, None
    message = error.get("message")
    code = error.get("code")
    return (
        str(message) if message else None,
        code if isinstance(code, int) else None,
    )


class HttpBackend(Backend):
    """HTTP backend using httpx for async requests."""

    def __init__(
        self,
        timeout: float = 60.0,
        default_headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize HTTP backend.

        Args:
            timeout: Default request timeout in seconds
            default_headers: Default headers for all requests
            transport: Custom httpx transport (tests use ``httpx.MockTransport``)
        """
        self.timeout = timeout
        self.default_headers = {
            "User-Agent": f"{__app_name__}/{__version__}",
            "Accept": "application/json",
            **(default_headers or {}),
        }
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "http"

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=self.default_headers,
                transport=self._transport,
                limits=httpx.Limits(
                    max_connections=10,
                    max_keepalive_connections=5,
                ),
            )
        return self._client

    async def fetch(self, request: RequestSpec) -> FetchResult:
        """Issue a single GET and decode the JSON response."""
        client = await self._ensure_client()
        started = time.perf_counter()

        try:
            response = await client.get(
                request.url,
                params=request.params or None,
                headers=request.headers or None,
                timeout=request.timeout,
            )
        except httpx.TimeoutException as e:
            raise UpstreamError(
                f"Timed out after {request.timeout:.0f}s",
                url=request.url,
                cause=e,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(
                f"Request failed: {e}",
                url=request.url,
                cause=e,
            ) from e

        elapsed_ms = (time.perf_counter() - started) * 1000

        try:
            payload = orjson.loads(response.content) if response.content else None
        except orjson.JSONDecodeError as e:
            if response.is_success:
                raise UpstreamError(
                    "Response body is not valid JSON",
                    url=request.url,
                    status_code=response.status_code,
                    cause=e,
                ) from e
            payload = None

        if not response.is_success:
            message, error_code = _describe_error(payload)
            raise UpstreamError(
                message or f"HTTP {response.status_code} {response.reason_phrase}".strip(),
                url=request.url,
                status_code=response.status_code,
                error_code=error_code,
            )

        logger.debug(
            "GET %s -> %s in %.0fms",
            request.url,
            response.status_code,
            elapsed_ms,
            extra={"account": request.account_id, "page": request.page},
        )

        return FetchResult(
            url=request.url,
            status_code=response.status_code,
            payload=payload,
            headers=dict(response.headers),
            elapsed_ms=elapsed_ms,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
