"""
Fixed-count retries with exponential backoff for the network calls made by tasks.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

import httpx

T = TypeVar("T")

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429})


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 2
    base_delay_s: float = 1.0
    exponential_base: float = 2.0


def calculate_delay(attempt: int, policy: RetryPolicy) -> float:
    """
    Delay before retry number `attempt` (1-based): 2s, 4s, 8s... with the defaults.
    """
    if attempt <= 0:
        return 0.0
    return policy.base_delay_s * (policy.exponential_base ** attempt)


def is_transient_error(exc: Exception) -> bool:
    """
    Connection failures, timeouts and 408/429/5xx responses.

    Client errors carry the HTTP status as `status_code`; anything without a
    retryable status is treated as permanent.
    """
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
    else:
        status = getattr(exc, "status_code", None)
    return isinstance(status, int) and (status in RETRYABLE_STATUS_CODES or status >= 500)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy = RetryPolicy(),
    should_retry: Callable[[Exception], bool] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "operation",
) -> T:
    """
    Await `func()` up to `policy.retries + 1` times.

    Exceptions rejected by `should_retry` propagate immediately; the last
    exception propagates once attempts are exhausted.
    """
    attempt = 0
    while True:
        if attempt > 0:
            await sleep(calculate_delay(attempt, policy))
        try:
            return await func()
        except Exception as exc:
            if attempt >= policy.retries or (should_retry is not None and not should_retry(exc)):
                raise
            attempt += 1
            logger.warning("retrying label=%s attempt=%s error=%s", label, attempt, exc)
