"""API endpoint for backend and refresh status."""

from fastapi import APIRouter, Depends

from oddsboard.api.deps import get_pipeline, get_refresher
from oddsboard.ingest.pipeline import IngestPipeline
from oddsboard.scheduler.refresh import RefreshScheduler

router = APIRouter()


@router.get("")
async def get_status(
    limit: int = 50,
    refresher: RefreshScheduler = Depends(get_refresher),
    pipeline: IngestPipeline = Depends(get_pipeline),
):
    """Scraper backend health, refresh state and recent activity."""
    return {
        "backend": {
            "url": pipeline.client.base_url,
            "healthy": await pipeline.client.health(),
        },
        "refresh": refresher.status(),
        "activity": refresher.activity.get_entries(limit),
    }
