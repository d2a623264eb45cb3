"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable

import pytest

from adpulse.core.backends.base import Backend, FetchResult, RequestSpec
from adpulse.core.credentials import StaticToken
from adpulse.core.fetch.fetcher import InsightsFetcher

Responder = Callable[[RequestSpec], Any]


class FakeBackend(Backend):
    """Records every upstream call and answers from a responder function.

    A responder may return a payload or an exception instance to raise.
    """

    def __init__(self, responder: Responder | None = None, delay: float = 0.0):
        self.responder = responder or (lambda request: {"data": []})
        self.delay = delay
        self.requests: list[RequestSpec] = []
        self.start_times: list[float] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    async def fetch(self, request: RequestSpec) -> FetchResult:
        self.requests.append(request)
        self.start_times.append(time.monotonic())
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            payload = self.responder(request)
            if isinstance(payload, Exception):
                raise payload
            return FetchResult(url=request.url, status_code=200, payload=payload)
        finally:
            self.in_flight -= 1

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def paged_responder(pages: list[list[dict[str, Any]]]) -> Responder:
    """Serve ``pages`` in order, linking them with ``paging.next`` cursors."""

    def respond(request: RequestSpec) -> dict[str, Any]:
        cursor = request.params.get("after")
        index = int(cursor[1:]) if cursor else 0
        payload: dict[str, Any] = {"data": pages[index]}
        if index + 1 < len(pages):
            payload["paging"] = {
                "cursors": {"after": f"c{index + 1}"},
                "next": f"https://graph.test/v21.0/act_1/insights?limit=2&after=c{index + 1}",
            }
        return payload

    return respond


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_fetcher(clock: FakeClock) -> Callable[..., InsightsFetcher]:
    """Build fetchers with fast defaults: no spacing, generous concurrency."""

    def factory(backend: Backend, **overrides: Any) -> InsightsFetcher:
        options: dict[str, Any] = {
            "base_url": "https://graph.test",
            "max_concurrent": 4,
            "min_interval_ms": 0,
            "cache_ttl_seconds": 180,
            "clock": clock,
        }
        options.update(overrides)
        return InsightsFetcher(backend, StaticToken("test-token"), **options)

    return factory
