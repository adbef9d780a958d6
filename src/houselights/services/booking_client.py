"""Booking simulation: start (never finish) a ticket purchase to read the seat map."""

import logging
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from houselights.schemas.upstream import BookingResponse
from houselights.utils.retry import RetryPolicy
from houselights.utils.text import booking_api_url, parse_screen_number

logger = logging.getLogger(__name__)

START_TICKETING_BODY = {"selectedLanguageCulture": None}


class BookingError(Exception):
    """The booking simulation call failed or returned something unusable."""


@dataclass(frozen=True)
class BookingDetails:
    """What a StartTicketing response tells us about a showing.

    Either field may be missing: closed booking windows (past showings) come
    back without a seat layout, and some screens have non-numeric names.
    """

    screen_number: int | None
    capacity: int | None
    seats_sold: int | None = None


def parse_booking_response(data: object) -> BookingDetails:
    """
    Extract screen number and seat capacity from a StartTicketing payload.

    Raises:
        BookingError: If the payload is not a JSON object of the expected shape
    """
    try:
        booking = BookingResponse.model_validate(data)
    except ValidationError as e:
        raise BookingError(f"unexpected StartTicketing payload: {e}") from e

    screen_number = parse_screen_number(booking.screen_text)

    capacity: int | None = None
    seats_sold: int | None = None
    layout = booking.seats_layout
    if layout is not None:
        seats = layout.real_seats()
        if seats:
            capacity = len(seats)
            seats_sold = sum(1 for seat in seats if seat.status not in (0, "0", None))

    return BookingDetails(screen_number=screen_number, capacity=capacity, seats_sold=seats_sold)


class BookingClient:
    """
    Issues StartTicketing calls on a shared keep-alive client.

    Transport failures are retried according to ``retry_policy``; HTTP error
    statuses and unparseable bodies are not.
    """

    def __init__(self, client: httpx.AsyncClient, retry_policy: RetryPolicy | None = None) -> None:
        self.client = client
        self.retry_policy = retry_policy or RetryPolicy()

    async def start_ticketing(self, booking_url: str) -> BookingDetails:
        """
        Start a booking for the showing behind ``booking_url``.

        Args:
            booking_url: Customer-facing ``.../startticketing/...`` URL

        Returns:
            Parsed booking details

        Raises:
            BookingError: If every attempt failed or the response was unusable
        """
        url = booking_api_url(booking_url)

        async def _post() -> httpx.Response:
            return await self.client.post(url, json=START_TICKETING_BODY)

        try:
            response = await self.retry_policy.run(_post, description=f"StartTicketing {url}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise BookingError(f"StartTicketing failed for {url}: {e!r}") from e

        details = parse_booking_response(data)
        logger.debug(
            f"StartTicketing {url}: screen={details.screen_number} "
            f"capacity={details.capacity} sold={details.seats_sold}"
        )
        return details
