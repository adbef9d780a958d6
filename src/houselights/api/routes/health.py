"""Health check endpoint."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health", tags=["health"])
async def health_check(request: Request) -> dict[str, str | None]:
    """
    Health check endpoint.

    Returns:
        Status message, plus the time of the last good poll (None before
        the first one)
    """
    store = getattr(request.app.state, "result_store", None)
    result = store.last_result if store else None
    return {
        "status": "ok",
        "last_poll": result.fetched_at.isoformat() if result else None,
    }
