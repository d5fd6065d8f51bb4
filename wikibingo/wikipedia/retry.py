"""
Retry with exponential backoff for calls to Wikipedia.

Only transient failures are retried: connection errors, timeouts and
responses carrying one of the policy's retryable statuses (5xx by default).
Client errors (4xx) are raised immediately.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from wikibingo.config import (
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_INITIAL_DELAY,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY,
    RETRYABLE_STATUSES,
)
from wikibingo.errors import ClientError, FetchTimeoutError, NetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[object]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff configuration.

    Attributes:
        max_attempts: Total attempts including the first call
        initial_delay: Wait after the first failure (seconds)
        max_delay: Upper bound for any single wait (seconds)
        backoff_multiplier: Growth factor between consecutive waits
        retryable_statuses: HTTP statuses treated as transient
    """

    max_attempts: int = RETRY_MAX_ATTEMPTS
    initial_delay: float = RETRY_INITIAL_DELAY
    max_delay: float = RETRY_MAX_DELAY
    backoff_multiplier: float = RETRY_BACKOFF_MULTIPLIER
    retryable_statuses: tuple[int, ...] = RETRYABLE_STATUSES

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-indexed)."""
        delay = self.initial_delay * self.backoff_multiplier ** (attempt - 1)
        return min(delay, self.max_delay)


DEFAULT_RETRY_POLICY = RetryPolicy()


def is_retryable_error(error: BaseException, policy: RetryPolicy = DEFAULT_RETRY_POLICY) -> bool:
    """Decide whether a failed call should be attempted again."""
    if isinstance(error, ClientError):
        return False
    if isinstance(error, (NetworkError, FetchTimeoutError, TimeoutError)):
        return True
    status = getattr(error, "status", None)
    return status is not None and status in policy.retryable_statuses


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    is_retryable: Callable[[BaseException, RetryPolicy], bool] = is_retryable_error,
    sleep: Sleep | None = None,
) -> T:
    """
    Await `operation`, retrying transient failures with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Attempt count and backoff settings
        is_retryable: Predicate deciding whether an error is transient
        sleep: Awaitable sleep (asyncio.sleep by default)

    Returns:
        The operation's result

    Raises:
        The last error once attempts are exhausted, or the first
        non-retryable error
    """
    sleep = sleep or asyncio.sleep

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == policy.max_attempts or not is_retryable(e, policy):
                raise

            delay = policy.delay_for(attempt)
            logger.warning(
                f"Retry attempt {attempt}/{policy.max_attempts} after {delay:.1f}s: {e}"
            )
            await sleep(delay)

    # max_attempts >= 1 guarantees the loop either returned or raised
    raise AssertionError("unreachable")


def with_retry(
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    *,
    is_retryable: Callable[[BaseException, RetryPolicy], bool] = is_retryable_error,
    sleep: Sleep | None = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator form of retry_async for coroutine functions.

    Usage:
        @with_retry(RetryPolicy(max_attempts=5))
        async def fetch(url): ...

        get_json = with_retry(policy)(client.get_json)
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            return await retry_async(
                lambda: func(*args, **kwargs),
                policy,
                is_retryable=is_retryable,
                sleep=sleep,
            )

        return wrapper

    return decorator
