"""Pydantic schemas for the ticketing site's JSON payloads.

Every model ignores unknown fields and tolerates missing optional ones; a
payload that does not fit is rejected per entry, never for a whole stage.
"""

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UpstreamModel(BaseModel):
    """Base for upstream payloads."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


def _as_number(value: Any) -> float | None:
    """Return ``value`` as a float, or None if it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


# ---------------------------------------------------------------------------
# Schedule feed
# ---------------------------------------------------------------------------


class TicketingLink(UpstreamModel):
    provider: str | None = None
    urls: list[str] = Field(default_factory=list)


class SessionData(UpstreamModel):
    ticketing: list[TicketingLink] = Field(default_factory=list)


class Occupancy(UpstreamModel):
    rate: float | None = None

    @field_validator("rate", mode="before")
    @classmethod
    def _numeric_or_none(cls, value: Any) -> float | None:
        return _as_number(value)


class ScheduleEntry(UpstreamModel):
    """One showing entry under ``schedule[movie_id][date]``."""

    id: str = Field(min_length=1)
    starts_at: datetime = Field(alias="startsAt")
    data: SessionData = Field(default_factory=SessionData)
    occupancy: Occupancy | None = None

    @property
    def booking_url(self) -> str | None:
        """First URL of the default ticketing provider, else of any provider."""
        links = sorted(self.data.ticketing, key=lambda link: link.provider != "default")
        for link in links:
            for url in link.urls:
                if url:
                    return url
        return None

    @property
    def occupancy_rate(self) -> float | None:
        if self.occupancy is None:
            return None
        return self.occupancy.rate


class TheaterSchedule(UpstreamModel):
    """Schedule for one theater: ``{movie_id: {date: [entry, ...]}}``.

    Entries stay as raw dicts so that a single malformed entry can be skipped
    without rejecting its neighbours.
    """

    schedule: dict[str, dict[str, list[Any]]] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Movie catalog
# ---------------------------------------------------------------------------


class MovieEntry(UpstreamModel):
    id: str | None = None
    title: str | None = None
    certificate: str | None = None
    runtime: int = 0

    @field_validator("runtime", mode="before")
    @classmethod
    def _runtime_or_zero(cls, value: Any) -> int:
        number = _as_number(value)
        if number is None or number < 0:
            return 0
        return int(number)


# ---------------------------------------------------------------------------
# Booking simulation (StartTicketing)
# ---------------------------------------------------------------------------


class Seat(UpstreamModel):
    id: str | None = None
    status: int | str | None = None

    @property
    def is_real(self) -> bool:
        """Gaps and aisles in the layout have no seat id."""
        return bool(self.id)


class SeatRow(UpstreamModel):
    seats: list[Seat | None] = Field(default_factory=list)


class SeatsLayout(UpstreamModel):
    rows: list[SeatRow | None] = Field(default_factory=list)

    def real_seats(self) -> list[Seat]:
        return [
            seat
            for row in self.rows
            if row is not None
            for seat in row.seats
            if seat is not None and seat.is_real
        ]


class SelectSeatsModel(UpstreamModel):
    seats_layout_model: SeatsLayout | None = Field(default=None, alias="seatsLayoutModel")


class CartSummaryModel(UpstreamModel):
    screen: str | None = None


class BookingResponse(UpstreamModel):
    """Response of ``POST /api/StartTicketing``."""

    cart_summary_model: CartSummaryModel | None = Field(default=None, alias="cartSummaryModel")
    select_seats_model: SelectSeatsModel | None = Field(default=None, alias="selectSeatsModel")

    @property
    def screen_text(self) -> str | None:
        if self.cart_summary_model is None:
            return None
        return self.cart_summary_model.screen

    @property
    def seats_layout(self) -> SeatsLayout | None:
        if self.select_seats_model is None:
            return None
        return self.select_seats_model.seats_layout_model
