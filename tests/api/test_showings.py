"""Tests for the showings API endpoints."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from conftest import NOW, FakeTicketingSite, booking_payload, schedule_entry
from houselights.config import Settings
from houselights.main import create_app
from houselights.models import CycleSummary, Movie, PollResult, Showing
from houselights.services.result_store import PollResultStore
from houselights.tasks.poll_job import ShowingsEngine
from houselights.utils.retry import RetryPolicy

LONDON_TZ = ZoneInfo("Europe/London")


# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------


def make_result() -> PollResult:
    movies = {
        "M1": Movie(id="M1", title="Nosferatu", certificate="15", runtime_minutes=132),
        "M2": Movie(id="M2", title="Anora", certificate="18", runtime_minutes=139),
    }
    showings = [
        Showing(
            id="S1",
            movie_id="M1",
            starts_at=datetime(2026, 10, 19, 20, 0, tzinfo=LONDON_TZ),
            screen_number=1,
            guests=40,
            capacity=100,
        ),
        Showing(
            id="S2",
            movie_id="M2",
            starts_at=datetime(2026, 10, 19, 18, 0, tzinfo=LONDON_TZ),
            screen_number=2,
            guests=12,
            capacity=60,
            from_cache=True,
        ),
    ]
    return PollResult(
        showings=showings,
        movies=movies,
        fetched_at=NOW,
        summary=CycleSummary(scheduled=2, enriched=2, from_cache=1),
    )


def install_store(app: FastAPI, *results: PollResult | None) -> list[int]:
    """Install a store whose cycles return ``results`` in order; returns a call counter."""
    queue = list(results)
    calls = [0]

    async def poll() -> PollResult | None:
        calls[0] += 1
        return queue.pop(0) if queue else None

    app.state.result_store = PollResultStore(poll, ttl_seconds=60)
    return calls


async def get(app: FastAPI, url: str, method: str = "GET"):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.request(method, url)


# ---------------------------------------------------------------------------
# GET /api/showings
# ---------------------------------------------------------------------------


class TestGetShowings:
    async def test_returns_showings_and_movies(self, test_app: FastAPI) -> None:
        install_store(test_app, make_result())

        response = await get(test_app, "/api/showings")

        assert response.status_code == 200
        data = response.json()
        assert data["total_showings"] == 2
        assert [s["id"] for s in data["showings"]] == ["S2", "S1"]
        assert data["showings"][1] == {
            "id": "S1",
            "movie_id": "M1",
            "starts_at": "2026-10-19T20:00:00+01:00",
            "screen_number": 1,
            "guests": 40,
            "capacity": 100,
        }
        assert data["movies"]["M1"] == {
            "id": "M1",
            "title": "Nosferatu",
            "certificate": "15",
            "runtime_minutes": 132,
        }

    async def test_schedule_order(self, test_app: FastAPI) -> None:
        install_store(test_app, make_result())
        response = await get(test_app, "/api/showings?order=schedule")
        assert [s["id"] for s in response.json()["showings"]] == ["S1", "S2"]

    async def test_rejects_unknown_order(self, test_app: FastAPI) -> None:
        install_store(test_app, make_result())
        response = await get(test_app, "/api/showings?order=screen")
        assert response.status_code == 422

    async def test_reuses_fresh_result(self, test_app: FastAPI) -> None:
        calls = install_store(test_app, make_result(), make_result())
        await get(test_app, "/api/showings")
        await get(test_app, "/api/showings")
        assert calls[0] == 1

    async def test_503_when_no_result_ever_produced(self, test_app: FastAPI) -> None:
        install_store(test_app, None)

        response = await get(test_app, "/api/showings")

        assert response.status_code == 503
        assert "detail" in response.json()

    async def test_empty_cycle_is_not_an_error(self, test_app: FastAPI) -> None:
        install_store(test_app, PollResult(showings=[], movies={}, fetched_at=NOW))

        response = await get(test_app, "/api/showings")

        assert response.status_code == 200
        assert response.json()["showings"] == []


# ---------------------------------------------------------------------------
# POST /api/showings/refresh
# ---------------------------------------------------------------------------


class TestRefreshShowings:
    async def test_forces_a_new_cycle(self, test_app: FastAPI) -> None:
        calls = install_store(test_app, make_result(), make_result())

        await get(test_app, "/api/showings")
        response = await get(test_app, "/api/showings/refresh", method="POST")

        assert response.status_code == 200
        assert calls[0] == 2

    async def test_failed_refresh_serves_previous_result(self, test_app: FastAPI) -> None:
        install_store(test_app, make_result(), None)

        await get(test_app, "/api/showings")
        response = await get(test_app, "/api/showings/refresh", method="POST")

        assert response.status_code == 200
        assert response.json()["total_showings"] == 2

    async def test_503_when_refresh_fails_without_previous_result(self, test_app: FastAPI) -> None:
        install_store(test_app, None)
        response = await get(test_app, "/api/showings/refresh", method="POST")
        assert response.status_code == 503


# ---------------------------------------------------------------------------
# Full app against the fake ticketing site
# ---------------------------------------------------------------------------


class TestCreateApp:
    async def test_serves_polled_showings(
        self,
        settings: Settings,
        site: FakeTicketingSite,
        no_sleep_retry: RetryPolicy,
    ) -> None:
        site.add_movie("M1", "Nosferatu")
        site.add_showing("M1", schedule_entry("S1", rate=80), booking_payload(screen="Screen 5", rows=5, seats_per_row=10))

        app = create_app(settings)
        engine = ShowingsEngine(settings, transport=site.transport, retry_policy=no_sleep_retry)
        app.state.result_store = PollResultStore(engine.poll, ttl_seconds=60)

        response = await get(app, "/api/showings")

        assert response.status_code == 200
        [showing] = response.json()["showings"]
        assert showing["screen_number"] == 5
        assert showing["guests"] == 40
        assert showing["capacity"] == 50

    async def test_engine_error_serves_previous_result(
        self,
        settings: Settings,
        site: FakeTicketingSite,
        no_sleep_retry: RetryPolicy,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        site.add_movie("M1", "Nosferatu")
        site.add_showing("M1", schedule_entry("S1", rate=80), booking_payload(screen="Screen 5"))

        app = create_app(settings)
        engine = ShowingsEngine(settings, transport=site.transport, retry_policy=no_sleep_retry)
        app.state.result_store = PollResultStore(engine.poll, ttl_seconds=60)
        await get(app, "/api/showings")

        async def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(engine, "run_cycle", explode)
        response = await get(app, "/api/showings/refresh", method="POST")

        assert response.status_code == 200
        assert [s["id"] for s in response.json()["showings"]] == ["S1"]

    def test_missing_configuration_fails_at_startup(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from pydantic import ValidationError

        from houselights.config import get_settings

        for name in ("CINEMA_ID", "SCHEDULE_API", "MOVIES_API"):
            monkeypatch.delenv(name, raising=False)
        get_settings.cache_clear()
        try:
            with pytest.raises(ValidationError):
                create_app()
        finally:
            get_settings.cache_clear()

    def test_unknown_timezone_fails_at_startup(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from pydantic import ValidationError

        from houselights.config import get_settings

        monkeypatch.setenv("CINEMA_ID", "x0lwi")
        monkeypatch.setenv("SCHEDULE_API", "https://cinema.test/schedule")
        monkeypatch.setenv("MOVIES_API", "https://cinema.test/movies")
        monkeypatch.setenv("CINEMA_TIMEZONE", "Mars/Olympus")
        get_settings.cache_clear()
        try:
            with pytest.raises(ValidationError, match="unknown timezone"):
                create_app()
        finally:
            get_settings.cache_clear()
