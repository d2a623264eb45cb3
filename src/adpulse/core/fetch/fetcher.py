"""
Rate-limited, cached, paginating insights fetcher.

One ``fetch`` returns the complete row set for a request descriptor:

- a live cache entry is returned without queueing or network activity
- concurrent identical descriptors share a single in-flight fetch
- otherwise one unit of work goes through the admission queue and follows
  the pagination cursor until the last page or the page ceiling

Failed fetches are never cached, and partial pages of a failed fetch are
discarded. Only the ceiling produces a partial result, which is cached
like a complete one.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from adpulse.core.backends.base import Backend, FetchResult, RequestSpec
from adpulse.core.credentials import TokenSource
from adpulse.core.errors import ValidationError
from adpulse.core.query.builder import (
    DEFAULT_FIELDS,
    DEFAULT_PAGE_SIZE,
    build_params,
    graph_url,
    insights_url,
)
from adpulse.core.query.descriptor import RequestDescriptor

from .admission import AdmissionQueue
from .cache import Row, TTLCache
from .pagination import CursorExtractor, after_cursor, page_rows

if TYPE_CHECKING:
    from adpulse.core.config.models import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://graph.facebook.com"
DEFAULT_API_VERSION = "v21.0"
DEFAULT_MAX_PAGES = 20


@dataclass
class FetcherStats:
    """Counters for one fetcher instance."""

    upstream_calls: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    coalesced: int = 0
    truncations: int = 0
    failures: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "upstream_calls": self.upstream_calls,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "coalesced": self.coalesced,
            "truncations": self.truncations,
            "failures": self.failures,
        }


class InsightsFetcher:
    """Fetch complete insights row sets with rate limiting and caching.

    Construct one instance per process; every instance owns its own queue,
    cache and in-flight map, so independent instances never share state.
    """

    def __init__(
        self,
        backend: Backend,
        token_source: TokenSource,
        *,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        fields: tuple[str, ...] | list[str] = DEFAULT_FIELDS,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        timeout: float = 60.0,
        max_concurrent: int = 2,
        min_interval_ms: int = 4000,
        cache_ttl_seconds: float = 180.0,
        cursor_extractor: CursorExtractor = after_cursor,
        cursor_param: str = "after",
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the fetcher.

        Args:
            backend: Transport performing single upstream calls
            token_source: Callable returning the access token per request
            base_url: Graph API root
            api_version: Graph API version segment, e.g. ``v21.0``
            fields: Insight fields requested on every call
            page_size: ``limit`` query parameter
            max_pages: Page ceiling per fetch; reaching it truncates silently
            timeout: Per-request timeout in seconds
            max_concurrent: Units of work running at once
            min_interval_ms: Minimum spacing between admissions
            cache_ttl_seconds: Lifetime of cached row sets
            cursor_extractor: Maps a page payload to the next cursor or None
            cursor_param: Query parameter carrying the cursor on follow-up pages
            clock: Wall clock in seconds, used for cache expiry
        """
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")

        self.backend = backend
        self.token_source = token_source
        self.base_url = base_url
        self.api_version = api_version
        self.fields = tuple(fields)
        self.page_size = page_size
        self.max_pages = max_pages
        self.timeout = timeout
        self.cursor_param = cursor_param

        self._extract_cursor = cursor_extractor
        self._queue = AdmissionQueue(max_concurrent=max_concurrent, min_interval_ms=min_interval_ms)
        self._cache = TTLCache(ttl_seconds=cache_ttl_seconds, clock=clock)
        self._inflight: dict[str, asyncio.Task[list[Row]]] = {}
        self._stats = FetcherStats()

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        backend: Backend | None = None,
        token_source: TokenSource | None = None,
    ) -> "InsightsFetcher":
        """Build a fetcher from application configuration."""
        from adpulse.core.backends.http_backend import HttpBackend
        from adpulse.core.credentials import EnvToken

        return cls(
            backend or HttpBackend(timeout=config.api.timeout_seconds),
            token_source or EnvToken(config.credentials.access_token_env),
            base_url=config.api.base_url,
            api_version=config.api.api_version,
            fields=config.api.fields,
            page_size=config.api.page_size,
            max_pages=config.pagination.max_pages,
            timeout=config.api.timeout_seconds,
            max_concurrent=config.rate_limit.max_concurrent,
            min_interval_ms=config.rate_limit.min_interval_ms,
            cache_ttl_seconds=config.cache.ttl_seconds,
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def fetch(self, descriptor: RequestDescriptor | Mapping[str, Any]) -> list[Row]:
        """Return every insights row for a descriptor.

        Args:
            descriptor: Request descriptor, or a mapping accepted by
                ``RequestDescriptor.from_mapping``

        Returns:
            Concatenated rows of all fetched pages

        Raises:
            ValidationError: Malformed descriptor (no upstream call is made)
            UpstreamError: Any page request failed
        """
        if not isinstance(descriptor, RequestDescriptor):
            if not isinstance(descriptor, Mapping):
                raise ValidationError(f"Unsupported descriptor type: {type(descriptor).__name__}")
            descriptor = RequestDescriptor.from_mapping(descriptor)

        key = descriptor.cache_key()

        rows = self._cache.get(key)
        if rows is not None:
            self._stats.cache_hits += 1
            logger.debug("Cache hit for %s", descriptor, extra={"cache_key": key})
            return rows

        task = self._inflight.get(key)
        if task is None:
            self._stats.cache_misses += 1
            logger.debug("Cache miss for %s", descriptor, extra={"cache_key": key})
            task = asyncio.ensure_future(self._load(descriptor, key))
            self._inflight[key] = task
        else:
            self._stats.coalesced += 1
            logger.debug("Joining in-flight fetch for %s", descriptor, extra={"cache_key": key})

        # Shielded so one waiter going away never aborts the shared fetch
        rows = await asyncio.shield(task)
        return list(rows)

    async def paginate(
        self,
        path: str,
        params: dict[str, str],
        *,
        max_pages: int | None = None,
    ) -> list[Row]:
        """Collect a paginated Graph edge through the admission queue (uncached)."""
        url = graph_url(self.base_url, self.api_version, path)
        ceiling = max_pages or self.max_pages
        return await self._queue.submit(lambda: self._collect(url, params, max_pages=ceiling))

    async def get_object(self, path: str, params: dict[str, str]) -> Any:
        """Fetch a single Graph object through the admission queue (uncached)."""
        url = graph_url(self.base_url, self.api_version, path)

        async def run() -> Any:
            result = await self._request(url, params)
            return result.payload

        return await self._queue.submit(run)

    def stats(self) -> dict[str, Any]:
        """Get fetcher statistics."""
        queue = self._queue.stats()
        return {
            **self._stats.to_dict(),
            "cached_keys": len(self._cache),
            "in_flight": len(self._inflight),
            "queued": queue.queued,
            "running": queue.running,
        }

    async def close(self) -> None:
        await self.backend.close()

    async def __aenter__(self) -> "InsightsFetcher":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _load(self, descriptor: RequestDescriptor, key: str) -> list[Row]:
        """Queue, fetch all pages, and cache. Runs once per in-flight key."""
        url = insights_url(self.base_url, self.api_version, descriptor.account_id)
        params = build_params(descriptor, fields=self.fields, page_size=self.page_size)

        try:
            rows = await self._queue.submit(
                lambda: self._collect(url, params, max_pages=self.max_pages, account_id=descriptor.account_id)
            )
        except Exception:
            self._stats.failures += 1
            raise
        else:
            self._cache.set(key, rows)
            logger.info(
                "Fetched %d rows for %s",
                len(rows),
                descriptor,
                extra={"account": descriptor.account_id, "cache_key": key, "rows": len(rows)},
            )
            return rows
        finally:
            self._inflight.pop(key, None)

    async def _collect(
        self,
        url: str,
        params: dict[str, str],
        *,
        max_pages: int,
        account_id: str | None = None,
    ) -> list[Row]:
        """Follow the pagination cursor and concatenate rows."""
        rows: list[Row] = []
        cursor: str | None = None
        pages = 0

        while True:
            page_params = dict(params)
            if cursor is not None:
                page_params[self.cursor_param] = cursor

            result = await self._request(url, page_params, page=pages + 1, account_id=account_id)
            pages += 1

            chunk = page_rows(result.payload)
            if chunk is None:
                logger.warning(
                    "Malformed page %d from %s; treating as last page",
                    pages,
                    url,
                    extra={"account": account_id, "page": pages},
                )
                break
            rows.extend(chunk)

            cursor = self._extract_cursor(result.payload)
            if cursor is None:
                break

            if pages >= max_pages:
                self._stats.truncations += 1
                logger.warning(
                    "Stopped after %d pages from %s; returning %d rows as a truncated result",
                    pages,
                    url,
                    len(rows),
                    extra={"account": account_id, "page": pages, "rows": len(rows)},
                )
                break

        return rows

    async def _request(
        self,
        url: str,
        params: dict[str, str],
        page: int | None = None,
        account_id: str | None = None,
    ) -> FetchResult:
        request = RequestSpec(
            url=url,
            params={**params, "access_token": self.token_source()},
            timeout=self.timeout,
            account_id=account_id,
            page=page,
        )
        self._stats.upstream_calls += 1
        return await self.backend.fetch(request)
