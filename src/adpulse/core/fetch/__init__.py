"""Fetch utilities - admission queue, caching, pagination, retries."""

from .admission import AdmissionQueue, AdmissionState, AdmissionStats
from .cache import CacheEntry, TTLCache
from .fetcher import InsightsFetcher
from .pagination import CursorExtractor, after_cursor, page_rows
from .retries import RetryConfig, is_throttled, retry_async

__all__ = [
    "AdmissionQueue",
    "AdmissionState",
    "AdmissionStats",
    "CacheEntry",
    "TTLCache",
    "InsightsFetcher",
    "CursorExtractor",
    "after_cursor",
    "page_rows",
    "RetryConfig",
    "is_throttled",
    "retry_async",
]
