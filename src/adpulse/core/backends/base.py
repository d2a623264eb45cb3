"""
Backend base classes and data structures.

Defines the transport contract used by the insights fetcher. A backend
performs exactly one upstream call per ``fetch`` and never retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class RequestSpec:
    """Specification for a Graph API GET request."""

    url: str
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = 60.0

    # Metadata for logging/debugging
    account_id: str | None = None
    page: int | None = None


@dataclass
class FetchResult:
    """Decoded response of a single upstream call."""

    url: str
    status_code: int
    payload: Any
    headers: dict[str, str] = field(default_factory=dict)

    # Timing
    elapsed_ms: float = 0.0
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        """Check if request was successful (2xx status)."""
        return 200 <= self.status_code < 300


class Backend(ABC):
    """Abstract base class for upstream transports."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier."""
        pass

    @abstractmethod
    async def fetch(self, request: RequestSpec) -> FetchResult:
        """Issue one GET request and decode the JSON body.

        Args:
            request: Request specification

        Returns:
            FetchResult with the decoded payload

        Raises:
            UpstreamError: On transport failure, timeout, non-2xx status
                or an undecodable body
        """
        pass

    async def close(self) -> None:
        """Clean up backend resources."""
        pass

    async def __aenter__(self) -> "Backend":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
