"""API endpoints for the auto-refresh timer."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from oddsboard.api.deps import get_refresher
from oddsboard.ingest.pipeline import RefreshRequest
from oddsboard.scheduler.refresh import INTERVAL_OPTIONS, RefreshBlockedError, RefreshScheduler

router = APIRouter()


@router.get("")
async def get_timer(refresher: RefreshScheduler = Depends(get_refresher)):
    """Timer state, countdown and which controls are enabled."""
    return refresher.status()


@router.post("/start")
async def start_timer(
    interval: int,
    date_token: Optional[str] = None,
    refresher: RefreshScheduler = Depends(get_refresher),
):
    """Fetch now and then every ``interval`` minutes."""
    if interval not in INTERVAL_OPTIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Interval must be one of {', '.join(str(i) for i in INTERVAL_OPTIONS)} minutes",
        )
    try:
        request = RefreshRequest.upcoming(date_token) if date_token else RefreshRequest.all_races()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        await refresher.start(interval, request)
    except RefreshBlockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return refresher.status()


@router.post("/stop")
async def stop_timer(refresher: RefreshScheduler = Depends(get_refresher)):
    """Stop auto-refresh and abort the fetch in flight."""
    await refresher.stop()
    return refresher.status()
