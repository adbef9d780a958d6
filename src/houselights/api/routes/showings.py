"""Showings API endpoints."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from houselights.models import PollResult
from houselights.schemas import MovieResponse, ShowingResponse, ShowingsResponse
from houselights.services.aggregator import reorder
from houselights.services.result_store import PollResultStore

logger = logging.getLogger(__name__)
router = APIRouter()


def get_result_store(request: Request) -> PollResultStore:
    return request.app.state.result_store


def to_response(result: PollResult, order: Literal["title", "schedule"]) -> ShowingsResponse:
    showings = reorder(result, order)
    return ShowingsResponse(
        showings=[ShowingResponse.model_validate(s) for s in showings],
        movies={mid: MovieResponse.model_validate(m) for mid, m in result.movies.items()},
        fetched_at=result.fetched_at,
        total_showings=len(showings),
    )


def _unavailable() -> HTTPException:
    return HTTPException(
        status_code=503,
        detail="No showing data is available yet; the ticketing site could not be polled.",
    )


@router.get("/showings", response_model=ShowingsResponse)
async def get_showings(
    order: Literal["title", "schedule"] = Query(
        "title", description="Sort by movie title, or keep the cinema's schedule order"
    ),
    store: PollResultStore = Depends(get_result_store),
) -> ShowingsResponse:
    """
    Current guest counts for every showing in the schedule window.

    Served from the last poll if it is recent enough; otherwise a new poll
    runs first.
    """
    result = await store.get()
    if result is None:
        raise _unavailable()
    return to_response(result, order)


@router.post("/showings/refresh", response_model=ShowingsResponse)
async def refresh_showings(
    store: PollResultStore = Depends(get_result_store),
) -> ShowingsResponse:
    """Run a poll cycle now and return its result."""
    result = await store.get(force=True)
    if result is None:
        raise _unavailable()
    return to_response(result, "title")
