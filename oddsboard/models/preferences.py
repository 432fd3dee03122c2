"""Key-value store for user preferences such as the text zoom level."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from oddsboard.config import melb_now_naive
from oddsboard.models.database import Base

logger = logging.getLogger(__name__)

ZOOM_KEY = "textZoomLevel"
ZOOM_DEFAULT = 1.0
ZOOM_MIN = 0.8
ZOOM_MAX = 1.3


class Preference(Base):
    """A single persisted preference."""

    __tablename__ = "preferences"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=melb_now_naive, onupdate=melb_now_naive
    )


async def get_preference(db: AsyncSession, key: str, default: Optional[str] = None) -> Optional[str]:
    """Read a preference, falling back to a default value."""
    result = await db.execute(select(Preference).where(Preference.key == key))
    pref = result.scalar_one_or_none()
    if pref is None or pref.value is None:
        return default
    return pref.value


async def set_preference(db: AsyncSession, key: str, value: str) -> Preference:
    """Create or update a preference."""
    result = await db.execute(select(Preference).where(Preference.key == key))
    pref = result.scalar_one_or_none()
    if pref is None:
        pref = Preference(key=key, value=value)
        db.add(pref)
    else:
        pref.value = value
    await db.commit()
    logger.debug(f"Preference {key} set to {value!r}")
    return pref


def clamp_zoom(level: float) -> float:
    return round(min(max(level, ZOOM_MIN), ZOOM_MAX), 2)


async def get_zoom_level(db: AsyncSession) -> float:
    raw = await get_preference(db, ZOOM_KEY)
    if raw is None:
        return ZOOM_DEFAULT
    try:
        return clamp_zoom(float(raw))
    except ValueError:
        logger.warning(f"Ignoring unparsable zoom preference {raw!r}")
        return ZOOM_DEFAULT


async def set_zoom_level(db: AsyncSession, level: float) -> float:
    level = clamp_zoom(level)
    await set_preference(db, ZOOM_KEY, str(level))
    return level
