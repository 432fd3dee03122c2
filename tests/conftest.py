"""Shared test fixtures for Oddsboard."""

from datetime import datetime
from typing import AsyncGenerator, Awaitable, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from oddsboard.config import MELB_TZ
from oddsboard.models import preferences  # noqa: F401  (registers the table)
from oddsboard.models.database import Base
from oddsboard.models.race import Horse, RaceSnapshot, Racecourse, Round
from oddsboard.scheduler.activity_log import ActivityLog


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


class ManualTimer:
    """Timer backend that only fires when a test tells it to."""

    def __init__(self):
        self.jobs: dict[str, tuple[float, Callable[[], Awaitable[None]]]] = {}
        self.cancelled: list[str] = []

    def every(self, job_id: str, seconds: float, callback: Callable[[], Awaitable[None]]) -> None:
        self.jobs[job_id] = (seconds, callback)

    def cancel(self, job_id: str) -> None:
        self.jobs.pop(job_id, None)
        self.cancelled.append(job_id)

    def interval(self, job_id: str) -> float:
        return self.jobs[job_id][0]

    async def fire(self, job_id: str, times: int = 1) -> None:
        for _ in range(times):
            _, callback = self.jobs[job_id]
            await callback()


@pytest.fixture
def manual_timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
def activity() -> ActivityLog:
    """Fresh activity log so tests do not share entries."""
    return ActivityLog()


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 1, 15, 5, 6, 789000, tzinfo=MELB_TZ)


def make_horse(number: int, odds: float, position: int = 0, name: str = None, **kwargs) -> Horse:
    return Horse(
        number=number,
        position=position or number,
        odds=odds,
        name=name or f"Horse {number}",
        jockey=kwargs.pop("jockey", "J Smith"),
        **kwargs,
    )


def make_round(round_number: int, odds: list[float], time: str = "12:30") -> Round:
    return Round(
        round_number=round_number,
        time=time,
        horses=tuple(make_horse(i, o) for i, o in enumerate(odds, start=1)),
    )


def make_snapshot(racecourses: list[Racecourse], title: str = "Today's Result") -> RaceSnapshot:
    return RaceSnapshot(
        racecourses=tuple(racecourses),
        title=title,
        fetched_at=datetime(2025, 3, 1, 12, 0, tzinfo=MELB_TZ),
    )


@pytest.fixture
def flemington() -> Racecourse:
    return Racecourse(
        name="Flemington",
        rounds=(
            make_round(1, [4.0, 2.0, 0, 8.5], time="12:30"),
            make_round(2, [3.0, 5.0, 6.0, 10.0, 12.0, 21.0, 2.2], time="13:05"),
        ),
    )


@pytest.fixture
def caulfield() -> Racecourse:
    return Racecourse(name="Caulfield", rounds=(make_round(1, [2.5, 3.5], time="12:45"),))


@pytest.fixture
def sample_racetracks() -> list[dict]:
    """Scraper payload for two racetracks, as returned by /api/scrape/all-races."""
    return [
        {
            "racetrack": "Flemington",
            "tracklinkUrl": "https://example.com/flemington",
            "completedRaces": [
                {
                    "raceNumber": "R1",
                    "time": "12:30",
                    "horses": [
                        {
                            "rank": "1",
                            "horseNumber": "4",
                            "horseName": "Fast Horse",
                            "jockey": "J McDonald",
                            "odds": {"open": "3.00", "winFixed": "2.50", "placeFixed": "1.30"},
                        },
                        {
                            "rank": "2",
                            "horseNumber": "7",
                            "horseName": "Slow, Horse",
                            "odds": {"winFixed": "$6.00", "placeFixed": "2.10"},
                        },
                        {
                            "rank": "3",
                            "horseNumber": "9",
                            "horseName": "Scratched",
                            "jockey": "D Oliver",
                            "odds": {"winFixed": "SCR", "placeFixed": ""},
                        },
                    ],
                },
                {
                    "raceNumber": "Race 2",
                    "time": "13:05",
                    "horses": [
                        {
                            "rank": 1,
                            "horseNumber": 1,
                            "horseName": "Only Runner",
                            "jockey": "B Melham",
                            "odds": {"winFixed": 1.8, "placeFixed": 1.1},
                        },
                    ],
                },
            ],
        },
        {
            "racetrack": "Randwick",
            "completedRaces": [
                {
                    "raceNumber": "R3",
                    "horses": [
                        {
                            "rank": "1",
                            "horseNumber": "2",
                            "horseName": "Harbour",
                            "jockey": "J Kah",
                            "odds": {"winFixed": "4.40"},
                        },
                    ],
                },
            ],
        },
    ]


@pytest.fixture
def sample_winners() -> list[dict]:
    """Scraper payload from /api/scrape/winners."""
    return [
        {
            "racecourse": "Flemington",
            "raceNumber": "R2",
            "time": "13:05",
            "link": "https://example.com/r2",
            "winner": {"number": "1", "name": "Only Runner", "jockey": "B Melham", "winOdds": "1.80"},
        },
        {
            "racecourse": "Flemington",
            "raceNumber": "R1",
            "time": "12:30",
            "winner": {"number": 7, "name": "Slow, Horse", "jockey": None, "winOdds": "$6.00"},
        },
    ]
