"""
Admission queue for upstream calls.

Limits how many units of work run at once and how closely their starts may
follow each other. The Graph API rate limit is account-wide, so spacing is
global across every resource rather than per account.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AdmissionState(str, Enum):
    """Lifecycle of a unit of work in the queue."""

    QUEUED = "queued"
    ADMITTED = "admitted"
    RUNNING = "running"
    SETTLED = "settled"


@dataclass
class QueueEntry:
    """A pending unit of work awaiting a concurrency slot."""

    task: Callable[[], Awaitable[Any]]
    future: asyncio.Future[Any]
    enqueued_at: float
    state: AdmissionState = AdmissionState.QUEUED
    started_at: float | None = None


@dataclass
class AdmissionStats:
    """Point-in-time view of the queue."""

    queued: int
    running: int
    admitted_total: int
    last_start: float | None
    waits: list[float] = field(default_factory=list)


class AdmissionQueue:
    """FIFO queue with a concurrency ceiling and minimum start spacing.

    An entry at the head of the queue is admitted when fewer than
    ``max_concurrent`` entries are running and at least ``min_interval_ms``
    have passed since the previous admission. When only spacing blocks, a
    single timer is armed for the remaining wait instead of polling.

    All state is mutated from the event loop thread between suspension
    points, so no locks are needed.
    """

    def __init__(
        self,
        max_concurrent: int = 2,
        min_interval_ms: int = 4000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the queue.

        Args:
            max_concurrent: Maximum units of work running at once
            min_interval_ms: Minimum milliseconds between two admissions
            clock: Monotonic clock in seconds
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if min_interval_ms < 0:
            raise ValueError("min_interval_ms must be >= 0")

        self.max_concurrent = max_concurrent
        self.min_interval = min_interval_ms / 1000.0
        self._clock = clock

        self._queue: deque[QueueEntry] = deque()
        self._running = 0
        self._last_start: float | None = None
        self._admitted_total = 0
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._recent_waits: deque[float] = deque(maxlen=50)

    @property
    def running(self) -> int:
        return self._running

    @property
    def queued(self) -> int:
        return len(self._queue)

    async def submit(self, task: Callable[[], Awaitable[T]]) -> T:
        """Queue a unit of work and wait for its result.

        Args:
            task: Zero-argument coroutine function to run once admitted

        Returns:
            Whatever the task returns; its exception propagates unchanged
        """
        loop = asyncio.get_running_loop()
        entry = QueueEntry(task=task, future=loop.create_future(), enqueued_at=self._clock())
        self._queue.append(entry)
        self._drain()
        return await entry.future

    def _drain(self) -> None:
        """Admit as many head entries as the limits allow."""
        while self._queue and self._running < self.max_concurrent:
            head = self._queue[0]
            if head.future.done():
                # Waiter went away before admission
                self._queue.popleft()
                continue

            now = self._clock()
            if self._last_start is not None:
                remaining = self.min_interval - (now - self._last_start)
                if remaining > 0:
                    self._arm_timer(remaining)
                    return

            self._start(self._queue.popleft(), now)

    def _arm_timer(self, delay: float) -> None:
        if self._timer is not None:
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self._drain()

    def _start(self, entry: QueueEntry, now: float) -> None:
        entry.state = AdmissionState.ADMITTED
        entry.started_at = now
        self._running += 1
        self._last_start = now
        self._admitted_total += 1
        self._recent_waits.append(now - entry.enqueued_at)

        logger.debug(
            "Admitted work after %.2fs (running=%d, queued=%d)",
            now - entry.enqueued_at,
            self._running,
            len(self._queue),
        )

        runner = asyncio.ensure_future(self._run(entry))
        self._tasks.add(runner)
        runner.add_done_callback(self._tasks.discard)

    async def _run(self, entry: QueueEntry) -> None:
        entry.state = AdmissionState.RUNNING
        try:
            result = await entry.task()
        except asyncio.CancelledError:
            if not entry.future.done():
                entry.future.cancel()
            raise
        except Exception as e:
            if not entry.future.done():
                entry.future.set_exception(e)
        else:
            if not entry.future.done():
                entry.future.set_result(result)
        finally:
            entry.state = AdmissionState.SETTLED
            self._running -= 1
            self._drain()

    def stats(self) -> AdmissionStats:
        """Get queue statistics."""
        return AdmissionStats(
            queued=len(self._queue),
            running=self._running,
            admitted_total=self._admitted_total,
            last_start=self._last_start,
            waits=list(self._recent_waits),
        )
