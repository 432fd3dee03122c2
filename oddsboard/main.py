"""FastAPI application entry point for Oddsboard."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.gzip import GZipMiddleware

from oddsboard.config import settings
from oddsboard.models.database import init_db
from oddsboard.ingest.pipeline import IngestPipeline
from oddsboard.scheduler.activity_log import log_system
from oddsboard.scheduler.manager import scheduler_manager
from oddsboard.scheduler.refresh import RefreshScheduler
from oddsboard.state import DashboardState
from oddsboard.api import board, timer, export, preferences, status

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    logger.info("Starting Oddsboard...")

    await init_db()

    pipeline = IngestPipeline.from_settings(settings)
    refresher = RefreshScheduler(
        pipeline.fetch_races,
        scheduler_manager,
        state=DashboardState(),
        fetch_winners=pipeline.fetch_winners,
    )
    app.state.pipeline = pipeline
    app.state.refresher = refresher

    await scheduler_manager.start()
    log_system(f"Started against {settings.api_url} ({settings.odds_field.label} odds)")

    if not settings.disable_background and settings.winners_interval_minutes > 0:
        refresher.start_winners_poll(settings.winners_interval_minutes)
        logger.info(f"Winners poll every {settings.winners_interval_minutes} min")
    elif settings.disable_background:
        logger.info("Background services disabled (ODDSBOARD_DISABLE_BACKGROUND=true)")

    yield

    # Shutdown
    logger.info("Shutting down Oddsboard...")
    await refresher.shutdown()
    await scheduler_manager.stop()
    await pipeline.close()


# Create FastAPI app
app = FastAPI(
    title="Oddsboard",
    description="Live racing odds board with Dutch staking analytics",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

# Include routers
app.include_router(board.router, prefix="/api", tags=["board"])
app.include_router(timer.router, prefix="/api/timer", tags=["timer"])
app.include_router(export.router, prefix="/api/export", tags=["export"])
app.include_router(preferences.router, prefix="/api/preferences", tags=["preferences"])
app.include_router(status.router, prefix="/api/status", tags=["status"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("oddsboard.main:app", host="127.0.0.1", port=8000, reload=settings.debug)
