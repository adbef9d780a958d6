"""FastAPI application entry point.

Run with ``uvicorn --factory houselights.main:create_app`` or the
``houselights-api`` console script.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from houselights.api.routes import health, showings
from houselights.config import Settings, get_settings
from houselights.services.result_store import PollResultStore
from houselights.tasks.poll_job import ShowingsEngine

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # httpx logs every request at INFO; one booking call per showing is too noisy
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    engine = ShowingsEngine(settings)
    store = PollResultStore(engine.poll, ttl_seconds=settings.result_ttl_seconds)
    app.state.result_store = store

    # Startup: optionally keep the result warm in the background
    scheduler: AsyncIOScheduler | None = None
    if settings.poll_interval_seconds > 0:
        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            store.refresh,
            trigger=IntervalTrigger(seconds=settings.poll_interval_seconds),
            id="poll_showings",
            name=f"Poll showings for {settings.cinema_id}",
            replace_existing=True,
            max_instances=1,
        )
        scheduler.start()
        logger.info(f"Scheduler started, polling every {settings.poll_interval_seconds}s")

    yield

    # Shutdown: stop the scheduler gracefully
    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings (loaded from the environment if not
            provided; missing required settings raise ValidationError)
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Houselights API",
        description="Live guest counts for every screening at one cinema",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(showings.router, prefix="/api", tags=["showings"])
    return app


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "houselights.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
    )
