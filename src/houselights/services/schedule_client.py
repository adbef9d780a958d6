"""Client for the cinema's schedule feed."""

import logging
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import httpx
from pydantic import ValidationError

from houselights.models import RawShowing
from houselights.schemas.upstream import ScheduleEntry, TheaterSchedule

logger = logging.getLogger(__name__)

SCHEDULE_WINDOW_DAYS = 2


def start_of_day(now: datetime | None = None) -> datetime:
    """Today at 00:00 UTC (the ``from`` boundary of the schedule window)."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def _iso_utc(moment: datetime) -> str:
    """Format as ``2026-10-19T00:00:00.000Z``, the shape the feed expects."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ScheduleClient:
    """
    Fetches the showings of one cinema for a two-day window.

    Entries without a booking URL or an occupancy rate cannot be enriched
    and are dropped here.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_url: str,
        cinema_id: str,
        timezone_name: str = "Europe/London",
    ) -> None:
        self.client = client
        self.api_url = api_url
        self.cinema_id = cinema_id.upper()
        self.timezone_name = timezone_name
        self.local_tz = ZoneInfo(timezone_name)
        # Entries dropped by the last fetch, reported as failures
        self.dropped_ids: list[str] = []

    def build_request_body(self, window_start: datetime) -> dict:
        window_end = window_start + timedelta(days=SCHEDULE_WINDOW_DAYS)
        return {
            "from": _iso_utc(window_start),
            "to": _iso_utc(window_end),
            "theaters": [{"id": self.cinema_id, "timeZone": self.timezone_name}],
            "nin": [],
            "sin": [],
        }

    async def fetch(self, window_start: datetime) -> list[RawShowing]:
        """
        Fetch the schedule starting at ``window_start``.

        Args:
            window_start: Start-of-day boundary (see ``start_of_day``)

        Returns:
            Showings sorted by start time, latest first. Empty on any
            transport or parse failure.
        """
        logger.info(f"Fetching schedule for {self.cinema_id}...")
        self.dropped_ids = []

        try:
            response = await self.client.post(
                self.api_url,
                json=self.build_request_body(window_start),
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Could not fetch schedule for {self.cinema_id}: {e!r}")
            return []

        if not isinstance(data, dict) or self.cinema_id not in data:
            logger.error(f"Schedule response has no entry for {self.cinema_id}; returning...")
            return []

        try:
            theater = TheaterSchedule.model_validate(data[self.cinema_id])
        except ValidationError as e:
            logger.error(f"Schedule for {self.cinema_id} has an unexpected shape: {e}")
            return []

        showings = self._parse_schedule(theater)
        showings.sort(key=lambda s: s.starts_at, reverse=True)
        logger.info(f"Schedule for {self.cinema_id}: {len(showings)} showings")
        return showings

    def _parse_schedule(self, theater: TheaterSchedule) -> list[RawShowing]:
        showings: list[RawShowing] = []
        seen: set[str] = set()

        for movie_id, dates in theater.schedule.items():
            for entries in dates.values():
                for raw_entry in entries:
                    showing = self._parse_entry(movie_id, raw_entry)
                    if showing is None or showing.id in seen:
                        continue
                    seen.add(showing.id)
                    showings.append(showing)

        return showings

    def _parse_entry(self, movie_id: str, raw_entry: object) -> RawShowing | None:
        try:
            entry = ScheduleEntry.model_validate(raw_entry)
        except ValidationError as e:
            entry_id = raw_entry.get("id") if isinstance(raw_entry, dict) else None
            logger.warning(f"Skipping malformed schedule entry {entry_id!r} for movie {movie_id}: {e}")
            if isinstance(entry_id, str) and entry_id:
                self.dropped_ids.append(entry_id)
            return None

        booking_url = entry.booking_url
        if not booking_url:
            logger.warning(f"Showing {entry.id} has no booking URL; skipping")
            self.dropped_ids.append(entry.id)
            return None

        rate = entry.occupancy_rate
        if rate is None:
            logger.warning(f"Showing {entry.id} has no occupancy rate; skipping")
            self.dropped_ids.append(entry.id)
            return None

        starts_at = entry.starts_at
        if starts_at.tzinfo is None:
            starts_at = starts_at.replace(tzinfo=self.local_tz)

        return RawShowing(
            id=entry.id,
            movie_id=movie_id,
            starts_at=starts_at,
            booking_url=booking_url,
            occupancy_rate=min(max(rate, 0.0), 100.0),
        )
