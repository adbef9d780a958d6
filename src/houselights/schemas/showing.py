"""Pydantic schemas for the showings API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MovieResponse(BaseModel):
    """Movie catalog entry."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    certificate: str
    runtime_minutes: int


class ShowingResponse(BaseModel):
    """An enriched showing with its current guest count."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    movie_id: str
    starts_at: datetime
    screen_number: int
    guests: int
    capacity: int


class ShowingsResponse(BaseModel):
    """Response for the showings endpoint: the last good poll result."""

    showings: list[ShowingResponse]
    movies: dict[str, MovieResponse]
    fetched_at: datetime
    total_showings: int
