"""
Vitalis - Bounded Retry
========================
A small, provider-independent retry helper for async calls.

``RetryPolicy`` describes *when* to retry (``retryable``), *how often*
(``max_attempts``, counting the first call) and *how long to wait*
between attempts (``delay``, fixed, no backoff).  ``call_with_retry``
re-raises the last exception once the policy is exhausted or the error
is not retryable, so callers keep full control over the fallback.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from vitalis.src.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _never(_: BaseException) -> bool:
    return False


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay: float = 1.0
    retryable: Callable[[BaseException], bool] = field(default=_never)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be ≥ 1, got {self.max_attempts}")
        if self.delay < 0:
            raise ValueError(f"delay must be ≥ 0, got {self.delay}")


async def call_with_retry(fn: Callable[[], Awaitable[T]], policy: RetryPolicy, label: str = "call") -> T:
    """
    Await ``fn()`` until it succeeds or *policy* gives up.

    Raises
    ------
    BaseException
        The last error raised by ``fn`` when it is not retryable or the
        attempt budget is spent.
    """
    attempt = 1
    while True:
        try:
            return await fn()
        except Exception as exc:
            if attempt >= policy.max_attempts or not policy.retryable(exc):
                raise
            logger.warning("[RETRY] %s failed (attempt %d/%d): %s — retrying in %.0fms.", label, attempt, policy.max_attempts, exc, policy.delay * 1000)
            await asyncio.sleep(policy.delay)
            attempt += 1
