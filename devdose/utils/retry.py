"""Exponential-backoff retry policy shared by every external call site."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _always_retry(exc: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry an operation with exponential backoff.

    The wait before retry ``n`` (0-based) is ``base_delay * 2**n``, capped at
    ``max_delay``. Errors rejected by ``is_retryable`` propagate immediately;
    the last error propagates once ``max_attempts`` is spent.

    ``run`` awaits coroutines and sleeps with ``sleep_func``; ``run_sync``
    calls blocking functions and sleeps with ``blocking_sleep``.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    is_retryable: Callable[[BaseException], bool] = _always_retry
    sleep_func: Callable[[float], Awaitable[None]] = asyncio.sleep
    blocking_sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def backoff(self, attempt: int) -> float:
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str = "operation",
    ) -> T:
        """Await ``operation()`` until it succeeds or attempts run out."""
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as exc:
                attempt += 1
                delay = self._delay_after(attempt, exc, description)
                if delay is None:
                    raise
                await self.sleep_func(delay)

    def run_sync(
        self,
        operation: Callable[[], T],
        description: str = "operation",
    ) -> T:
        """Call ``operation()`` until it succeeds or attempts run out."""
        attempt = 0
        while True:
            try:
                return operation()
            except Exception as exc:
                attempt += 1
                delay = self._delay_after(attempt, exc, description)
                if delay is None:
                    raise
                self.blocking_sleep(delay)

    def _delay_after(self, attempt: int, exc: Exception, description: str) -> Optional[float]:
        """Seconds to wait before the next attempt, or None to give up."""
        if attempt >= self.max_attempts or not self.is_retryable(exc):
            return None
        delay = self.backoff(attempt - 1)
        logger.warning(
            "%s failed (attempt %d/%d): %s; retrying in %.1fs",
            description,
            attempt,
            self.max_attempts,
            exc,
            delay,
        )
        return delay
