"""API endpoints for the race board: view model, selection and fetches."""

from fastapi import APIRouter, Depends, HTTPException

from oddsboard.api.deps import get_refresher
from oddsboard.config import melb_today
from oddsboard.ingest.pipeline import RefreshRequest
from oddsboard.scheduler.refresh import RefreshBlockedError, RefreshScheduler, schedule_date_options

router = APIRouter()


def board_view(refresher: RefreshScheduler, numbers: str = "") -> dict:
    """Dashboard view model plus refresh status."""
    return {**refresher.state.to_dict(numbers), "refresh": refresher.status()}


@router.get("/board")
async def get_board(numbers: str = "", refresher: RefreshScheduler = Depends(get_refresher)):
    """Current board. ``numbers`` ("1,3,5") limits the runners listed per round."""
    return board_view(refresher, numbers)


@router.post("/board/select/{name}")
async def toggle_racecourse(name: str, refresher: RefreshScheduler = Depends(get_refresher)):
    """Toggle a racecourse in or out of the selection."""
    try:
        selected = refresher.state.toggle(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Racecourse not on the board: {name}")
    return {"name": name, "selected": selected}


@router.post("/board/notification/dismiss")
async def dismiss_notification(refresher: RefreshScheduler = Depends(get_refresher)):
    refresher.state.dismiss_notification()
    return {"status": "ok"}


async def _run_refresh(refresher: RefreshScheduler, request: RefreshRequest) -> dict:
    try:
        outcome = await refresher.refresh(request)
    except RefreshBlockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"outcome": outcome.value, "board": board_view(refresher)}


@router.post("/refresh")
async def refresh_all_races(refresher: RefreshScheduler = Depends(get_refresher)):
    """Fetch today's races now."""
    return await _run_refresh(refresher, RefreshRequest.all_races())


@router.get("/schedule/options")
async def get_schedule_options():
    """Dates offered for the upcoming-races schedule."""
    return schedule_date_options(melb_today())


@router.post("/schedule/{date_token}")
async def refresh_schedule(date_token: str, refresher: RefreshScheduler = Depends(get_refresher)):
    """Fetch the upcoming schedule for ``today``, ``tomorrow`` or a YYYY-MM-DD date."""
    try:
        request = RefreshRequest.upcoming(date_token)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return await _run_refresh(refresher, request)


@router.get("/winners")
async def get_winners(refresher: RefreshScheduler = Depends(get_refresher)):
    """Today's winners with their market rank on the current board."""
    state = refresher.state
    return {
        "winners": [w.to_dict() for w in state.annotated_winners()],
        "loading": state.winners_loading,
        "error": state.winners_error,
        "updated_at": state.winners_updated_at.isoformat() if state.winners_updated_at else None,
    }


@router.post("/winners/refresh")
async def refresh_winners(refresher: RefreshScheduler = Depends(get_refresher)):
    """Fetch today's winners now."""
    outcome = await refresher.refresh_winners()
    return {"outcome": outcome.value, **(await get_winners(refresher))}
