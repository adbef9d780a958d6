"""Last-good poll result, refreshed on expiry and shared by all requests."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from houselights.models import PollResult

logger = logging.getLogger(__name__)

PollFn = Callable[[], Awaitable[PollResult | None]]


class PollResultStore:
    """
    Serializes poll cycles and caches the last good result.

    Requests arriving while a cycle runs wait for it and reuse its result
    instead of starting another. A failed cycle leaves the previous result in
    place.
    """

    def __init__(
        self,
        poll: PollFn,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._poll = poll
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self.last_result: PollResult | None = None
        self._last_attempt: float | None = None
        self.cycles = 0

    def is_fresh(self) -> bool:
        """True if a cycle was attempted within the TTL."""
        if self._last_attempt is None:
            return False
        return self._clock() - self._last_attempt < self.ttl_seconds

    async def get(self, force: bool = False) -> PollResult | None:
        """
        Return the last good result, running a cycle first if it has expired.

        Args:
            force: Run a cycle even if the result is still fresh

        Returns:
            The last good result, or None if no cycle has ever succeeded
        """
        if not force and self.is_fresh():
            return self.last_result

        # A cycle that finished while we waited for the lock counts as ours
        generation = self.cycles
        async with self._lock:
            if self.cycles == generation:
                await self._refresh()

        return self.last_result

    async def refresh(self) -> PollResult | None:
        """Run a cycle now (used by the scheduler)."""
        return await self.get(force=True)

    async def _refresh(self) -> None:
        try:
            result = await self._poll()
        except Exception as e:
            logger.error(f"Poll cycle raised: {e!r}", exc_info=True)
            result = None
        finally:
            self._last_attempt = self._clock()
            self.cycles += 1

        if result is None:
            if self.last_result is None:
                logger.error("Poll cycle failed and no previous result is available")
            else:
                logger.warning("Poll cycle failed; serving previous result")
            return

        self.last_result = result
