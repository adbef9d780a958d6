"""Poll cycle: schedule → movies → enrichment → result."""

import logging
from datetime import datetime, timezone

import httpx
from pydantic import ValidationError

from houselights.config import Settings, get_settings
from houselights.models import CycleSummary, PollResult
from houselights.services.aggregator import ShowingOrder, build_result
from houselights.services.booking_client import BookingClient
from houselights.services.enricher import DetailEnricher
from houselights.services.movie_client import MovieClient
from houselights.services.schedule_client import ScheduleClient, start_of_day
from houselights.services.screen_cache import ScreenDetailCache
from houselights.utils.retry import RetryPolicy

logger = logging.getLogger(__name__)

_UA = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"


class ShowingsEngine:
    """
    Runs poll cycles for one cinema and owns the screen detail cache.

    The cache, and the day boundary it was filled under, are the only state
    that survives from one cycle to the next. Cycles must not overlap; the
    API layer serializes them.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """
        Args:
            settings: Application settings
            transport: Optional httpx transport (tests pass a MockTransport)
            retry_policy: Retry policy for booking calls (built from settings
                if not provided)
        """
        self.settings = settings
        self.transport = transport
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.booking_max_attempts,
            backoff_seconds=settings.booking_backoff_seconds,
        )
        self.cache = ScreenDetailCache()
        self.last_window_start: datetime | None = None

    def check_day_rollover(self, window_start: datetime) -> bool:
        """
        Clear the cache if ``window_start`` is a different day from last time.

        Differences within the tolerance are clock jitter, not a new day.

        Returns:
            True if the cache was cleared
        """
        previous = self.last_window_start
        self.last_window_start = window_start
        if previous is None:
            return False

        drift = abs((window_start - previous).total_seconds())
        if drift <= self.settings.day_boundary_tolerance_seconds:
            return False

        logger.info(f"Schedule window moved from {previous:%Y-%m-%d} to {window_start:%Y-%m-%d}")
        self.cache.invalidate_all()
        return True

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.http_timeout,
            headers={"User-Agent": _UA, "Accept": "application/json"},
            transport=self.transport,
        )

    async def run_cycle(
        self,
        now: datetime | None = None,
        order: ShowingOrder = "title",
    ) -> PollResult:
        """
        Run one poll cycle to completion.

        Stage failures degrade to empty collections, so this always returns
        a result; a result with no showings is a legitimate outcome.

        Args:
            now: Current time (defaults to the wall clock)
            order: Showing order of the result

        Returns:
            The poll result
        """
        now = now or datetime.now(timezone.utc)
        window_start = start_of_day(now)
        self.check_day_rollover(window_start)

        async with self._http_client() as client:
            schedule_client = ScheduleClient(
                client,
                self.settings.schedule_api_url,
                self.settings.cinema_id,
                self.settings.cinema_timezone,
            )
            raw_showings = await schedule_client.fetch(window_start)

            movie_client = MovieClient(client, self.settings.movies_api_url)
            movies = await movie_client.fetch(s.movie_id for s in raw_showings)

            enricher = DetailEnricher(
                BookingClient(client, self.retry_policy),
                self.cache,
                concurrency=self.settings.booking_concurrency,
            )
            outcome = await enricher.populate_details(raw_showings)

        failed_ids = schedule_client.dropped_ids + outcome.failed_ids
        summary = CycleSummary(
            scheduled=len(raw_showings) + len(schedule_client.dropped_ids),
            enriched=len(outcome.showings),
            from_cache=outcome.from_cache,
            failed=len(failed_ids),
            failed_ids=failed_ids,
        )
        return build_result(outcome.showings, movies, summary, order=order, fetched_at=now)

    async def poll(self, order: ShowingOrder = "title") -> PollResult | None:
        """
        Run one cycle, turning an unexpected error into None.

        Callers that must keep serving (the API, the scheduler, the CLI) use
        this instead of ``run_cycle``.
        """
        try:
            return await self.run_cycle(order=order)
        except Exception as e:
            logger.error(f"Poll cycle failed: {e}", exc_info=True)
            return None


_engine: ShowingsEngine | None = None


def get_engine() -> ShowingsEngine:
    """Return the process-wide engine, creating it from settings on first use."""
    global _engine
    if _engine is None:
        _engine = ShowingsEngine(get_settings())
    return _engine


async def run_poll_cycle() -> PollResult | None:
    """
    Run one poll cycle with the process-wide engine.

    Returns:
        The poll result, or None if the cycle could not run at all (missing
        configuration or an unexpected error). A cycle that found no
        showings still returns a result.
    """
    try:
        engine = get_engine()
    except ValidationError as e:
        logger.error(
            "One or more required settings are missing "
            f"(CINEMA_ID, SCHEDULE_API, MOVIES_API). No data will be returned.\n{e}"
        )
        return None

    return await engine.poll()
