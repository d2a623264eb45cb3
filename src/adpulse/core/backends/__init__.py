"""Backend implementations for upstream API calls."""

from .base import Backend, FetchResult, RequestSpec
from .http_backend import HttpBackend

__all__ = [
    "Backend",
    "FetchResult",
    "RequestSpec",
    "HttpBackend",
]
