"""Run one poll cycle and print the guest count of every showing."""

import argparse
import asyncio
import sys
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from houselights.config import get_settings
from houselights.main import configure_logging
from houselights.models import PollResult
from houselights.services.aggregator import reorder
from houselights.tasks.poll_job import ShowingsEngine


def format_table(result: PollResult, timezone_name: str, order: str = "title") -> list[str]:
    """Render a poll result as printable lines."""
    local_tz = ZoneInfo(timezone_name)
    lines = []
    for showing in reorder(result, order):
        movie = result.movies.get(showing.movie_id)
        title = movie.title if movie else f"(unknown movie {showing.movie_id})"
        starts = showing.starts_at.astimezone(local_tz).strftime("%a %H:%M")
        lines.append(
            f"  {starts}  Screen {showing.screen_number:<3} "
            f"{showing.guests:>4}/{showing.capacity:<4} {title}"
        )
    return lines


async def poll_once(order: str) -> bool:
    """Print one cycle's showings; return False if nothing could be fetched."""
    settings = get_settings()
    engine = ShowingsEngine(settings)
    result = await engine.poll(order=order)
    if result is None:
        print("Poll cycle failed; see the log for details", file=sys.stderr)
        return False

    print(f"Showings for {settings.cinema_id.upper()} as of {result.fetched_at:%Y-%m-%d %H:%M} UTC\n")
    for line in format_table(result, settings.cinema_timezone, order):
        print(line)

    summary = result.summary
    print(
        f"\n{summary.enriched} showings, {summary.from_cache} from cache, "
        f"{summary.failed} failed (of {summary.scheduled} scheduled)"
    )
    return summary.scheduled > 0


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Poll the ticketing site once and print current guest counts."
    )
    parser.add_argument(
        "--order",
        choices=["title", "schedule"],
        default="title",
        help="Sort by movie title (default) or keep schedule order",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    args = parser.parse_args()

    configure_logging(args.log_level)
    try:
        ok = asyncio.run(poll_once(args.order))
    except ValidationError as e:
        print(f"Missing configuration (CINEMA_ID, SCHEDULE_API, MOVIES_API):\n{e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
