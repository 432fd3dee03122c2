"""API endpoints for display preferences."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from oddsboard.models.database import get_db
from oddsboard.models.preferences import ZOOM_DEFAULT, ZOOM_MAX, ZOOM_MIN, get_zoom_level, set_zoom_level

router = APIRouter()


class ZoomUpdate(BaseModel):
    level: float


def _zoom_response(level: float) -> dict:
    return {"level": level, "min": ZOOM_MIN, "max": ZOOM_MAX, "default": ZOOM_DEFAULT}


@router.get("/zoom")
async def get_zoom(db: AsyncSession = Depends(get_db)):
    """Text zoom level."""
    return _zoom_response(await get_zoom_level(db))


@router.put("/zoom")
async def update_zoom(update: ZoomUpdate, db: AsyncSession = Depends(get_db)):
    """Set the text zoom level (clamped to the allowed range)."""
    return _zoom_response(await set_zoom_level(db, update.level))
