"""Turns schedule entries into showings with a screen number and guest count."""

import asyncio
import logging
from dataclasses import dataclass, field

from houselights.models import RawShowing, Showing
from houselights.services.booking_client import BookingClient, BookingError
from houselights.services.screen_cache import ScreenDetailCache
from houselights.utils.guests import compute_guests

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 15


@dataclass
class EnrichmentOutcome:
    """Showings resolved in one cycle, plus the ids that could not be."""

    showings: list[Showing] = field(default_factory=list)
    failed_ids: list[str] = field(default_factory=list)
    from_cache: int = 0


class DetailEnricher:
    """
    Resolves screen number and capacity for each showing.

    Showings whose screen and capacity are both cached are served without a
    network call. The rest go through a booking simulation, at most
    ``concurrency`` at a time, and warm the cache on success.
    """

    def __init__(
        self,
        booking_client: BookingClient,
        cache: ScreenDetailCache,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.booking_client = booking_client
        self.cache = cache
        self.concurrency = concurrency

    async def populate_details(self, raw_showings: list[RawShowing]) -> EnrichmentOutcome:
        """
        Enrich every showing in ``raw_showings``.

        Showings come back in input order, minus the ones that failed.
        """
        outcome = EnrichmentOutcome()
        pending: list[RawShowing] = []
        seen: set[str] = set()

        for raw in raw_showings:
            if raw.id in seen:
                continue
            seen.add(raw.id)

            cached = self._from_cache(raw)
            if cached is not None:
                outcome.showings.append(cached)
                outcome.from_cache += 1
            else:
                pending.append(raw)

        if pending:
            logger.info(
                f"Starting {len(pending)} bookings "
                f"({outcome.from_cache} showings served from cache)..."
            )
            sem = asyncio.Semaphore(self.concurrency)
            results = await asyncio.gather(
                *[self._resolve(sem, raw) for raw in pending],
                return_exceptions=True,
            )
            for raw, result in zip(pending, results):
                if isinstance(result, Showing):
                    outcome.showings.append(result)
                    continue
                if isinstance(result, BaseException):
                    logger.error(
                        f"Unexpected error enriching showing {raw.id}: {result!r}",
                        exc_info=result,
                    )
                outcome.failed_ids.append(raw.id)

            position = {raw.id: index for index, raw in enumerate(raw_showings)}
            outcome.showings.sort(key=lambda s: position[s.id])

        return outcome

    def _from_cache(self, raw: RawShowing) -> Showing | None:
        cached = self.cache.lookup(raw.id)
        if cached is None:
            return None

        screen_number, capacity = cached
        return Showing(
            id=raw.id,
            movie_id=raw.movie_id,
            starts_at=raw.starts_at,
            screen_number=screen_number,
            guests=compute_guests(capacity, raw.occupancy_rate),
            capacity=capacity,
            from_cache=True,
        )

    async def _resolve(self, sem: asyncio.Semaphore, raw: RawShowing) -> Showing | None:
        async with sem:
            try:
                details = await self.booking_client.start_ticketing(raw.booking_url)
            except BookingError as e:
                logger.warning(f"Showing {raw.id}: {e}")
                return None

        screen_number = details.screen_number
        if screen_number is None:
            screen_number = self.cache.screen_for(raw.id)
            if screen_number is None:
                logger.warning(f"Showing {raw.id}: no screen number in booking response or cache")
                return None
            logger.debug(f"Showing {raw.id}: using cached screen {screen_number}")

        capacity = details.capacity
        if capacity is None:
            capacity = self.cache.capacity_for(screen_number)
            if capacity is None:
                logger.warning(
                    f"Showing {raw.id}: no seat layout and no cached capacity "
                    f"for screen {screen_number}"
                )
                return None
            logger.debug(f"Showing {raw.id}: using cached capacity {capacity}")

        self.cache.record_screen(raw.id, screen_number)
        self.cache.record_capacity(screen_number, capacity)

        return Showing(
            id=raw.id,
            movie_id=raw.movie_id,
            starts_at=raw.starts_at,
            screen_number=screen_number,
            guests=compute_guests(capacity, raw.occupancy_rate),
            capacity=capacity,
        )
