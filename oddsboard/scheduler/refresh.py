"""Refresh control loop: manual, timed and cancelled fetches.

The scheduler is a two-state machine (``IDLE`` / ``ACTIVE``). Every fetch,
whatever triggered it, goes through a single-flight :class:`FetchSlot`:
issuing a new fetch cancels the one in flight, and a cancelled fetch can never
publish its result even if the response arrives afterwards. Timers and the
network are injected so the loop runs without a UI or a real backend.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

from oddsboard.analytics.formatting import format_countdown
from oddsboard.config import melb_now
from oddsboard.ingest.cancel import CancelToken
from oddsboard.ingest.errors import (
    EmptyResultError,
    FetchCancelledError,
    MalformedInputError,
    NetworkError,
)
from oddsboard.ingest.pipeline import RefreshRequest
from oddsboard.models.race import RaceSnapshot, Winner
from oddsboard.scheduler.activity_log import ActivityLog, ActivityType, activity_log
from oddsboard.state import DashboardState

logger = logging.getLogger(__name__)

T = TypeVar("T")

INTERVAL_OPTIONS = (5, 15, 30, 60)  # minutes

REFRESH_JOB = "board-refresh"
COUNTDOWN_JOB = "board-countdown"
WINNERS_JOB = "winners-refresh"


def schedule_date_options(today: date) -> list[dict]:
    """The four schedule choices offered: today, tomorrow, +2 and +3 days."""
    later = [today + timedelta(days=n) for n in (1, 2, 3)]
    return [
        {"label": f"Today ({today.isoformat()})", "value": "today"},
        {"label": f"Tomorrow ({later[0].isoformat()})", "value": "tomorrow"},
        {"label": later[1].isoformat(), "value": later[1].isoformat()},
        {"label": later[2].isoformat(), "value": later[2].isoformat()},
    ]


RaceFetcher = Callable[[RefreshRequest, CancelToken, Optional[RaceSnapshot]], Awaitable[RaceSnapshot]]
WinnersFetcher = Callable[[CancelToken], Awaitable[list[Winner]]]


class Timer(Protocol):
    """Repeating timer backend (APScheduler in the app, a fake in tests)."""

    def every(self, job_id: str, seconds: float, callback: Callable[[], Awaitable[None]]) -> None:
        ...

    def cancel(self, job_id: str) -> None:
        ...


class RefreshState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class RefreshOutcome(str, Enum):
    UPDATED = "updated"
    EMPTY = "empty"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RefreshBlockedError(Exception):
    """A refresh action was requested while the controls disallow it."""

    pass


@dataclass(frozen=True)
class Controls:
    """Which refresh actions are currently enabled."""

    can_scrape: bool
    can_schedule: bool
    can_start_timer: bool
    can_stop_timer: bool

    def to_dict(self) -> dict:
        return {
            "can_scrape": self.can_scrape,
            "can_schedule": self.can_schedule,
            "can_start_timer": self.can_start_timer,
            "can_stop_timer": self.can_stop_timer,
        }


class FetchSlot:
    """Holds at most one outstanding fetch; newer fetches supersede older."""

    def __init__(self, name: str):
        self.name = name
        self._token: Optional[CancelToken] = None

    @property
    def in_flight(self) -> bool:
        return self._token is not None

    @property
    def current(self) -> Optional[CancelToken]:
        return self._token

    def cancel(self, reason: str = "cancelled") -> None:
        if self._token is not None:
            self._token.cancel(reason)
            self._token = None

    async def run(self, fetch: Callable[[CancelToken], Awaitable[T]]) -> T:
        """Run ``fetch`` as the slot's only fetch.

        Raises:
            FetchCancelledError: If this fetch was superseded or cancelled,
                whatever the fetch itself returned or raised.
        """
        self.cancel("superseded")
        token = CancelToken(self.name)
        self._token = token
        try:
            result = await fetch(token)
        except FetchCancelledError:
            raise
        except Exception as e:
            if token.cancelled:
                raise FetchCancelledError(f"{self.name} {token.reason}") from e
            raise
        finally:
            if self._token is token:
                self._token = None
        token.raise_if_cancelled()
        return result


class RefreshScheduler:
    """Idle/Active refresh state machine driving the dashboard state."""

    def __init__(
        self,
        fetch_races: RaceFetcher,
        timer: Timer,
        state: Optional[DashboardState] = None,
        fetch_winners: Optional[WinnersFetcher] = None,
        activity: Optional[ActivityLog] = None,
        clock: Callable[[], datetime] = melb_now,
    ):
        self._fetch_races = fetch_races
        self._fetch_winners = fetch_winners
        self.timer = timer
        self.state = state or DashboardState()
        self.activity = activity if activity is not None else activity_log
        self._clock = clock

        self.refresh_state = RefreshState.IDLE
        self.interval_minutes = 0
        self.remaining_seconds = 0
        self.timer_request = RefreshRequest.all_races()
        self.winners_interval_minutes = 0

        self._races = FetchSlot("races")
        self._winners = FetchSlot("winners")
        self._tasks: set[asyncio.Task] = set()

    @property
    def is_active(self) -> bool:
        return self.refresh_state is RefreshState.ACTIVE

    @property
    def controls(self) -> Controls:
        loading = self.state.loading
        active = self.is_active
        return Controls(
            can_scrape=not loading and not active,
            can_schedule=not loading and not active,
            can_start_timer=not loading and not active,
            can_stop_timer=active,
        )

    # ──────────────────────────────────────────────
    # Idle <-> Active
    # ──────────────────────────────────────────────

    async def start(self, interval_minutes: int, request: Optional[RefreshRequest] = None) -> None:
        """Idle -> Active: fetch now, then every ``interval_minutes``."""
        if interval_minutes <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval_minutes}")
        if self.is_active:
            logger.warning("Auto-refresh already active")
            return
        if not self.controls.can_start_timer:
            raise RefreshBlockedError("A fetch is in progress")

        self.refresh_state = RefreshState.ACTIVE
        self.interval_minutes = interval_minutes
        self.remaining_seconds = interval_minutes * 60
        self.timer_request = request or RefreshRequest.all_races()

        self.timer.every(REFRESH_JOB, interval_minutes * 60, self._on_refresh_tick)
        self.timer.every(COUNTDOWN_JOB, 1, self._on_countdown_tick)
        self.activity.log(
            ActivityType.TIMER,
            f"Auto-refresh started ({interval_minutes} min interval)",
            source=self.timer_request.title,
        )
        self._spawn(self.refresh(self.timer_request, force=True))

    async def stop(self) -> None:
        """Active -> Idle: cancel both timers and abort the fetch in flight."""
        if not self.is_active:
            return
        self.timer.cancel(REFRESH_JOB)
        self.timer.cancel(COUNTDOWN_JOB)
        self._races.cancel("stopped")
        self.refresh_state = RefreshState.IDLE
        self.remaining_seconds = 0
        self.activity.log(ActivityType.TIMER, "Auto-refresh stopped")

    async def _on_refresh_tick(self) -> None:
        if not self.is_active:
            return
        logger.info(f"Auto-refresh triggered ({self.interval_minutes} min interval)")
        self.remaining_seconds = self.interval_minutes * 60
        self._spawn(self.refresh(self.timer_request, force=True))

    async def _on_countdown_tick(self) -> None:
        """Display countdown; wraps to the full interval, never fetches."""
        if not self.is_active:
            return
        if self.remaining_seconds <= 1:
            self.remaining_seconds = self.interval_minutes * 60
        else:
            self.remaining_seconds -= 1

    # ──────────────────────────────────────────────
    # Fetching
    # ──────────────────────────────────────────────

    async def refresh(self, request: Optional[RefreshRequest] = None, *, force: bool = False) -> RefreshOutcome:
        """Fetch races and publish them to the dashboard state.

        Args:
            request: What to scrape (today's races by default).
            force: Skip the control checks and supersede any fetch in
                flight. The timer path uses this; user actions do not.

        Raises:
            RefreshBlockedError: If the action is disabled and not forced.
        """
        request = request or RefreshRequest.all_races()
        if not force:
            controls = self.controls
            allowed = controls.can_schedule if request.is_schedule else controls.can_scrape
            if not allowed:
                reason = "auto-refresh is active" if self.is_active else "a fetch is in progress"
                raise RefreshBlockedError(f"Cannot refresh: {reason}")

        title = request.title
        previous = self.state.snapshot
        self.state.begin_loading(title)
        self.activity.log(ActivityType.REFRESH_START, f"Fetching {title}", source=title)
        try:
            snapshot = await self._races.run(
                lambda token: self._fetch_races(request, token, previous)
            )
        except FetchCancelledError as e:
            self.activity.log(
                ActivityType.REFRESH_CANCELLED, f"Fetch cancelled: {title}", source=title, details=str(e)
            )
            return RefreshOutcome.CANCELLED
        except EmptyResultError as e:
            self.state.mark_empty(title)
            self.activity.log(
                ActivityType.REFRESH_EMPTY, f"No data: {title}", source=title, details=str(e), status="warning"
            )
            return RefreshOutcome.EMPTY
        except (NetworkError, MalformedInputError) as e:
            self.state.notify_error(f"Failed to fetch {title}: {e}")
            self.activity.log(
                ActivityType.REFRESH_ERROR, f"Fetch failed: {title}", source=title, details=str(e), status="error"
            )
            return RefreshOutcome.FAILED
        finally:
            if not self._races.in_flight:
                self.state.end_loading()

        self.state.publish(snapshot)
        self.activity.log(
            ActivityType.REFRESH_COMPLETE,
            f"Fetched {title}",
            source=title,
            details=f"{len(snapshot.racecourses)} racecourses",
            status="success",
        )
        return RefreshOutcome.UPDATED

    async def refresh_winners(self) -> RefreshOutcome:
        """Fetch today's winners on their own single-flight slot."""
        if self._fetch_winners is None:
            raise RuntimeError("No winners fetcher configured")

        self.state.winners_loading = True
        try:
            winners = await self._winners.run(self._fetch_winners)
        except FetchCancelledError:
            return RefreshOutcome.CANCELLED
        except (NetworkError, MalformedInputError) as e:
            self.state.winners_error = str(e)
            self.activity.log(ActivityType.WINNERS, "Winners fetch failed", details=str(e), status="error")
            return RefreshOutcome.FAILED
        finally:
            if not self._winners.in_flight:
                self.state.winners_loading = False

        self.state.set_winners(winners, self._clock())
        self.activity.log(ActivityType.WINNERS, f"Fetched {len(winners)} winners", status="success")
        return RefreshOutcome.UPDATED if winners else RefreshOutcome.EMPTY

    def start_winners_poll(self, interval_minutes: int) -> None:
        """Fetch winners now and every ``interval_minutes``."""
        if interval_minutes <= 0:
            raise ValueError(f"Winners interval must be positive, got {interval_minutes}")
        self.winners_interval_minutes = interval_minutes
        self.timer.every(WINNERS_JOB, interval_minutes * 60, self._on_winners_tick)
        self._spawn(self.refresh_winners())

    def stop_winners_poll(self) -> None:
        self.timer.cancel(WINNERS_JOB)
        self._winners.cancel("stopped")
        self.winners_interval_minutes = 0

    async def _on_winners_tick(self) -> None:
        self._spawn(self.refresh_winners())

    # ──────────────────────────────────────────────
    # Housekeeping
    # ──────────────────────────────────────────────

    def _spawn(self, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background refresh failed: {exc!r}", exc_info=exc)

    async def wait_for_pending(self) -> None:
        """Wait until every background fetch has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        await self.stop()
        if self.winners_interval_minutes:
            self.stop_winners_poll()
        self._races.cancel("shutdown")
        self._winners.cancel("shutdown")
        await self.wait_for_pending()

    def status(self) -> dict:
        return {
            "state": self.refresh_state.value,
            "interval_minutes": self.interval_minutes,
            "remaining_seconds": self.remaining_seconds,
            "countdown": format_countdown(self.remaining_seconds),
            "interval_options": list(INTERVAL_OPTIONS),
            "loading": self.state.loading,
            "controls": self.controls.to_dict(),
            "winners_interval_minutes": self.winners_interval_minutes,
        }
