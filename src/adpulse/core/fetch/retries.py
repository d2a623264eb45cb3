"""
Retry utilities with tenacity.

The fetcher itself never retries; retrying against an already failing or
rate-limited upstream only adds load. These helpers are for callers, such
as the sync job, that decide a second attempt is worth it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random_exponential,
)

from adpulse.core.errors import UpstreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_WAIT = 5  # seconds
DEFAULT_MAX_WAIT = 60  # seconds
DEFAULT_MULTIPLIER = 2

# Graph API codes for "too many calls"; retrying immediately makes them worse
THROTTLE_ERROR_CODES = {4, 17, 32, 613, 80000, 80004}


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    min_wait: float = DEFAULT_MIN_WAIT
    max_wait: float = DEFAULT_MAX_WAIT
    multiplier: float = DEFAULT_MULTIPLIER
    jitter: bool = True
    retry_exceptions: tuple[type[Exception], ...] = field(default=(UpstreamError,))
    retry_throttled: bool = False


def is_throttled(error: BaseException) -> bool:
    """Whether an upstream error signals application or account throttling."""
    return isinstance(error, UpstreamError) and (
        error.status_code == 429 or error.error_code in THROTTLE_ERROR_CODES
    )


def _should_retry(error: BaseException, config: RetryConfig) -> bool:
    if not isinstance(error, config.retry_exceptions):
        return False
    return config.retry_throttled or not is_throttled(error)


async def retry_async(
    coro_func: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> T:
    """Execute an async function with retry logic.

    Args:
        coro_func: Async function to call
        *args: Positional arguments
        config: Retry configuration
        **kwargs: Keyword arguments

    Returns:
        Function result

    Raises:
        The last exception once all attempts fail
    """
    if config is None:
        config = RetryConfig()

    if config.jitter:
        wait_strategy = wait_random_exponential(
            multiplier=config.multiplier,
            min=config.min_wait,
            max=config.max_wait,
        )
    else:
        wait_strategy = wait_exponential(
            multiplier=config.multiplier,
            min=config.min_wait,
            max=config.max_wait,
        )

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max(1, config.max_attempts)),
        wait=wait_strategy,
        retry=retry_if_exception(lambda e: _should_retry(e, config)),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            return await coro_func(*args, **kwargs)

