"""Assembles a poll result from the enriched showings and the movie catalog."""

import logging
from datetime import datetime, timezone
from typing import Literal

from houselights.models import CycleSummary, Movie, PollResult, Showing

logger = logging.getLogger(__name__)

ShowingOrder = Literal["title", "schedule"]


def sort_showings(showings: list[Showing], movies: dict[str, Movie]) -> list[Showing]:
    """Sort by movie title, then start time. Showings with no catalog entry go last."""

    def key(showing: Showing) -> tuple[bool, str, datetime]:
        movie = movies.get(showing.movie_id)
        title = movie.title.casefold() if movie else ""
        return (movie is None, title, showing.starts_at)

    return sorted(showings, key=key)


def build_result(
    showings: list[Showing],
    movies: dict[str, Movie],
    summary: CycleSummary,
    order: ShowingOrder = "title",
    fetched_at: datetime | None = None,
) -> PollResult:
    """
    Package one cycle's showings and movies.

    Args:
        showings: Enriched showings in schedule order (duplicates allowed)
        movies: Movie lookup for the cycle; may be empty
        summary: Counts for the cycle, logged here
        order: "title" for display order, "schedule" to keep cinema order
        fetched_at: Cycle timestamp (defaults to now)

    Returns:
        The poll result
    """
    unique: dict[str, Showing] = {}
    for showing in showings:
        unique.setdefault(showing.id, showing)
    deduplicated = list(unique.values())
    schedule_order = list(unique)

    if order == "title":
        deduplicated = sort_showings(deduplicated, movies)

    logger.info(
        f"Poll cycle complete: {summary.scheduled} scheduled, "
        f"{summary.enriched} enriched, {summary.from_cache} from cache, "
        f"{summary.failed} failed"
    )
    if summary.failed_ids:
        logger.debug(f"Failed showings: {', '.join(summary.failed_ids)}")

    return PollResult(
        showings=deduplicated,
        movies=dict(movies),
        fetched_at=fetched_at or datetime.now(timezone.utc),
        summary=summary,
        schedule_order=schedule_order,
    )


def reorder(result: PollResult, order: ShowingOrder) -> list[Showing]:
    """Showings of ``result`` in the requested order."""
    if order == "title":
        return sort_showings(result.showings, result.movies)
    # Showings missing from schedule_order keep their stored order, after the rest
    position = {showing_id: index for index, showing_id in enumerate(result.schedule_order)}
    return sorted(result.showings, key=lambda s: position.get(s.id, len(position)))
