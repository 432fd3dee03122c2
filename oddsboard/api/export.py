"""API endpoints for CSV and Excel downloads of the selected racecourses."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from oddsboard.api.deps import get_refresher
from oddsboard.config import melb_now, settings
from oddsboard.export import CSV_MEDIA_TYPE, XLSX_MEDIA_TYPE, export_filename, render_csv, render_xlsx
from oddsboard.scheduler.refresh import RefreshScheduler

router = APIRouter()


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _selected(refresher: RefreshScheduler):
    racecourses = refresher.state.selected_racecourses()
    if not racecourses:
        raise HTTPException(status_code=400, detail="No racecourses selected")
    return racecourses


@router.get("/csv")
async def export_csv(refresher: RefreshScheduler = Depends(get_refresher)):
    racecourses = _selected(refresher)
    text = render_csv(racecourses, refresher.state.favorites(), settings.odds_field)
    return _attachment(text.encode("utf-8"), CSV_MEDIA_TYPE, export_filename("csv", melb_now()))


@router.get("/xlsx")
async def export_xlsx(refresher: RefreshScheduler = Depends(get_refresher)):
    racecourses = _selected(refresher)
    state = refresher.state
    now = melb_now()
    data = render_xlsx(
        racecourses,
        state.favorites(),
        now,
        odds_field=settings.odds_field,
        winners=state.annotated_winners() if state.winners else None,
    )
    return _attachment(data, XLSX_MEDIA_TYPE, export_filename("xlsx", now))
