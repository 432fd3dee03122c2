"""Tests for persisted preferences."""

import pytest

from oddsboard.models.preferences import (
    ZOOM_DEFAULT,
    ZOOM_KEY,
    clamp_zoom,
    get_preference,
    get_zoom_level,
    set_preference,
    set_zoom_level,
)


class TestPreferences:

    @pytest.mark.asyncio
    async def test_default_when_missing(self, db_session):
        assert await get_preference(db_session, "missing", "fallback") == "fallback"

    @pytest.mark.asyncio
    async def test_set_and_update(self, db_session):
        await set_preference(db_session, "theme", "dark")
        await set_preference(db_session, "theme", "light")
        assert await get_preference(db_session, "theme") == "light"


class TestZoom:

    @pytest.mark.parametrize("level,expected", [
        (1.0, 1.0),
        (0.5, 0.8),
        (2.0, 1.3),
        (1.15, 1.15),
    ])
    def test_clamp(self, level, expected):
        assert clamp_zoom(level) == expected

    @pytest.mark.asyncio
    async def test_default_zoom(self, db_session):
        assert await get_zoom_level(db_session) == ZOOM_DEFAULT

    @pytest.mark.asyncio
    async def test_zoom_stored_clamped(self, db_session):
        assert await set_zoom_level(db_session, 1.9) == 1.3
        assert await get_zoom_level(db_session) == 1.3
        assert await get_preference(db_session, ZOOM_KEY) == "1.3"

    @pytest.mark.asyncio
    async def test_unparsable_zoom(self, db_session):
        await set_preference(db_session, ZOOM_KEY, "huge")
        assert await get_zoom_level(db_session) == ZOOM_DEFAULT
