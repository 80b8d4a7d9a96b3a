"""Exponential backoff with an injectable retry predicate.

The delay before retry *n* (1-indexed) is
``min(initial_delay_ms * 2 ** (n - 1), max_delay_ms)``.  A policy with
``max_retries=3`` makes at most four attempts.  When attempts run out, or the
predicate rejects an error, the error is re-raised unchanged.
"""

from __future__ import annotations

import asyncio
import time
from typing import Annotated, Awaitable, Callable, TypeVar

from pydantic import BaseModel, Field

from coffeeblack_bridge.exceptions import (
    ReasoningTimeoutError,
    TransportError,
    UpstreamError,
)
from coffeeblack_bridge.logging import attempt_context, get_logger

log = get_logger(__name__)

T = TypeVar("T")

ShouldRetry = Callable[[Exception], bool]


def is_transient(error: Exception) -> bool:
    """Default predicate: timeouts, transport failures and 5xx answers."""
    if isinstance(error, (ReasoningTimeoutError, TransportError)):
        return True
    if isinstance(error, UpstreamError):
        return error.is_server_error
    return False


class RetryPolicy(BaseModel):
    max_retries: Annotated[int, Field(ge=0)] = 3
    initial_delay_ms: Annotated[int, Field(ge=0)] = 1000
    max_delay_ms: Annotated[int, Field(ge=0)] = 10_000

    def delay_for_retry(self, retry: int) -> float:
        """Return the delay in seconds before the *retry*-th retry (1-indexed)."""
        delay_ms = min(self.initial_delay_ms * (2 ** (retry - 1)), self.max_delay_ms)
        return delay_ms / 1000


def _should_give_up(
    error: Exception, attempt: int, policy: RetryPolicy, should_retry: ShouldRetry
) -> bool:
    return attempt > policy.max_retries or not should_retry(error)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    should_retry: ShouldRetry = is_transient,
) -> T:
    """Await *fn* until it succeeds, the policy is exhausted or an error is fatal."""
    attempt = 0
    while True:
        attempt += 1
        try:
            with attempt_context(attempt):
                return await fn()
        except Exception as exc:
            if _should_give_up(exc, attempt, policy, should_retry):
                raise
            delay = policy.delay_for_retry(attempt)
            log.warning(
                "reason_retry_scheduled",
                attempt=attempt,
                delay_s=delay,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            await asyncio.sleep(delay)


def retry_sync(
    fn: Callable[[], T],
    policy: RetryPolicy,
    should_retry: ShouldRetry = is_transient,
) -> T:
    """Blocking counterpart of :func:`retry_async`."""
    attempt = 0
    while True:
        attempt += 1
        try:
            with attempt_context(attempt):
                return fn()
        except Exception as exc:
            if _should_give_up(exc, attempt, policy, should_retry):
                raise
            delay = policy.delay_for_retry(attempt)
            log.warning(
                "reason_retry_scheduled",
                attempt=attempt,
                delay_s=delay,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            time.sleep(delay)
