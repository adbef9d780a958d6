"""Pydantic schemas for upstream payloads and API responses."""

from houselights.schemas.showing import MovieResponse, ShowingResponse, ShowingsResponse
from houselights.schemas.upstream import (
    BookingResponse,
    MovieEntry,
    ScheduleEntry,
    TheaterSchedule,
)

__all__ = [
    "BookingResponse",
    "MovieEntry",
    "MovieResponse",
    "ScheduleEntry",
    "ShowingResponse",
    "ShowingsResponse",
    "TheaterSchedule",
]
