"""Shared test fixtures."""

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest
from fastapi import FastAPI

from houselights.api.routes import health, showings
from houselights.config import Settings
from houselights.services.result_store import PollResultStore
from houselights.utils.retry import RetryPolicy

CINEMA_ID = "X0LWI"
SCHEDULE_URL = "https://cinema.test/api/gatsby-source-boxofficeapi/schedule"
MOVIES_URL = "https://cinema.test/api/gatsby-source-boxofficeapi/movies"
TICKETS_BASE = "https://tickets.cinema.test"

NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------


def booking_url(showing_id: str) -> str:
    return f"{TICKETS_BASE}/startticketing/{showing_id}"


_MISSING = object()


def schedule_entry(
    showing_id: str,
    starts_at: str = "2026-10-19T18:30:00",
    url: str | None | object = _MISSING,
    rate: object = 50,
) -> dict:
    """A schedule feed entry; pass ``rate=None`` to omit the occupancy object."""
    if url is _MISSING:
        url = booking_url(showing_id)
    entry: dict = {
        "id": showing_id,
        "startsAt": starts_at,
        "isExpired": False,
        "data": {"ticketing": [{"provider": "default", "urls": [url] if url else []}]},
    }
    if rate is not None:
        entry["occupancy"] = {"rate": rate}
    return entry


def booking_payload(
    screen: str | None = "Screen 4",
    rows: int = 2,
    seats_per_row: int = 5,
    sold: int = 0,
    with_layout: bool = True,
) -> dict:
    """A StartTicketing response with ``rows * seats_per_row`` real seats and one aisle per row."""
    payload: dict = {"cartSummaryModel": {"screen": screen}}
    if not with_layout:
        payload["selectSeatsModel"] = {"seatsLayoutModel": None}
        return payload

    remaining_sold = sold
    layout_rows = []
    for r in range(rows):
        seats: list[dict | None] = []
        for s in range(seats_per_row):
            status = 1 if remaining_sold > 0 else 0
            remaining_sold -= status
            seats.append({"id": f"{r}-{s}", "status": status})
        seats.insert(seats_per_row // 2, {"id": None, "status": 0})  # aisle
        layout_rows.append({"seats": seats})
    payload["selectSeatsModel"] = {"seatsLayoutModel": {"rows": layout_rows}}
    return payload


# ---------------------------------------------------------------------------
# Fake ticketing site
# ---------------------------------------------------------------------------


class FakeTicketingSite:
    """In-memory stand-in for the schedule, movie and StartTicketing endpoints."""

    def __init__(self) -> None:
        self.schedule: dict[str, dict[str, list[dict]]] = {}
        self.movies: list[dict] = []
        self.bookings: dict[str, dict] = {}
        self.transport_failures: dict[str, int] = {}

        self.schedule_requests: list[dict] = []
        self.movie_requests: list[list[str]] = []
        self.booking_calls: list[str] = []
        self.booking_bodies: list[dict] = []

        self.schedule_status = 200
        self.movies_status = 200
        self.booking_delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0

    def add_showing(
        self,
        movie_id: str,
        entry: dict,
        booking: dict | None = None,
        day: str = "2026-10-19",
    ) -> None:
        self.schedule.setdefault(movie_id, {}).setdefault(day, []).append(entry)
        if booking is not None:
            self.bookings[entry["id"]] = booking

    def add_movie(self, movie_id: str, title: str, certificate: str = "15", runtime: int = 120) -> None:
        self.movies.append(
            {"id": movie_id, "title": title, "certificate": certificate, "runtime": runtime}
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path

        if request.url.host == "cinema.test" and path.endswith("/schedule"):
            self.schedule_requests.append(json.loads(request.content))
            if self.schedule_status != 200:
                return httpx.Response(self.schedule_status)
            return httpx.Response(200, json={CINEMA_ID: {"schedule": self.schedule}})

        if request.url.host == "cinema.test" and path.endswith("/movies"):
            self.movie_requests.append(request.url.params.get_list("ids"))
            if self.movies_status != 200:
                return httpx.Response(self.movies_status)
            return httpx.Response(200, json=self.movies)

        if path.startswith("/api/StartTicketing/"):
            return await self._start_ticketing(request)

        return httpx.Response(404)

    async def _start_ticketing(self, request: httpx.Request) -> httpx.Response:
        showing_id = request.url.path.rsplit("/", 1)[-1]
        self.booking_calls.append(showing_id)
        self.booking_bodies.append(json.loads(request.content))

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.booking_delay)
            if self.transport_failures.get(showing_id, 0) > 0:
                self.transport_failures[showing_id] -= 1
                raise httpx.ConnectError("connection reset", request=request)
            payload = self.bookings.get(showing_id)
            if payload is None:
                return httpx.Response(404)
            return httpx.Response(200, json=payload)
        finally:
            self.in_flight -= 1


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    return Settings(
        cinema_id=CINEMA_ID.lower(),
        schedule_api_url=SCHEDULE_URL,
        movies_api_url=MOVIES_URL,
        booking_backoff_seconds=0,
    )


@pytest.fixture
def site() -> FakeTicketingSite:
    return FakeTicketingSite()


@pytest.fixture
def no_sleep_retry() -> RetryPolicy:
    async def _no_sleep(_: float) -> None:
        return None

    return RetryPolicy(max_attempts=3, backoff_seconds=0.2, sleep=_no_sleep)


@pytest.fixture
def test_app() -> FastAPI:
    """Minimal FastAPI app without the scheduler lifespan, for API tests.

    Tests install their own ``app.state.result_store``.
    """
    app = FastAPI()
    app.include_router(health.router)
    app.include_router(showings.router, prefix="/api")
    app.state.result_store = PollResultStore(_no_result, ttl_seconds=60)
    return app


async def _no_result():
    return None
