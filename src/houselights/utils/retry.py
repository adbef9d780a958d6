"""Retry policy for flaky upstream calls."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry an async call on transport failures with linear backoff.

    The delay before attempt ``n + 1`` is ``backoff_seconds * n``, so the
    defaults wait 0.2s then 0.4s before giving up after three attempts.
    """

    max_attempts: int = 3
    backoff_seconds: float = 0.2
    retry_on: tuple[type[BaseException], ...] = (httpx.TransportError,)
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, compare=False)

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return self.backoff_seconds * attempt

    async def run(self, call: Callable[[], Awaitable[T]], description: str = "request") -> T:
        """
        Await ``call()`` until it succeeds or attempts run out.

        Exceptions not listed in ``retry_on`` propagate immediately; the last
        retryable exception propagates once every attempt has failed.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await call()
            except self.retry_on as e:
                if attempt >= self.max_attempts:
                    logger.warning(
                        f"{description} failed after {attempt} attempts: {e!r}"
                    )
                    raise
                delay = self.delay(attempt)
                logger.debug(
                    f"{description} failed (attempt {attempt}/{self.max_attempts}): "
                    f"{e!r}; retrying in {delay:.2f}s"
                )
                await self.sleep(delay)

        raise RuntimeError("RetryPolicy.max_attempts must be at least 1")
