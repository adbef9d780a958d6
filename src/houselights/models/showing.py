"""Showing data models produced and consumed by the poll pipeline."""

from dataclasses import dataclass, field
from datetime import datetime

from houselights.models.movie import Movie


@dataclass
class RawShowing:
    """
    A schedule entry that has a booking handle and an occupancy rate.

    Created by the schedule client and discarded once the enricher has
    turned it into a ``Showing`` (or dropped it).
    """

    id: str
    movie_id: str
    starts_at: datetime  # timezone-aware
    booking_url: str
    occupancy_rate: float  # percentage, 0-100

    def __post_init__(self) -> None:
        if self.starts_at.tzinfo is None:
            raise ValueError("starts_at must be timezone-aware")
        if not 0 <= self.occupancy_rate <= 100:
            raise ValueError(f"occupancy_rate out of range: {self.occupancy_rate}")


@dataclass(frozen=True)
class Showing:
    """A fully enriched showing, as returned to callers."""

    id: str
    movie_id: str
    starts_at: datetime
    screen_number: int
    guests: int
    capacity: int
    from_cache: bool = False


@dataclass
class CycleSummary:
    """
    Counts describing one poll cycle. Logged, not returned to API clients.

    ``enriched`` counts every showing in the result; ``from_cache`` is the
    subset of those served without a booking call.
    """

    scheduled: int = 0
    enriched: int = 0
    from_cache: int = 0
    failed: int = 0
    failed_ids: list[str] = field(default_factory=list)


@dataclass
class PollResult:
    """The atomic output of one poll cycle."""

    showings: list[Showing]
    movies: dict[str, Movie]
    fetched_at: datetime
    summary: CycleSummary = field(default_factory=CycleSummary)
    # Showing ids in the order the schedule listed them (latest first)
    schedule_order: list[str] = field(default_factory=list)
