"""Refresh scheduling: timers, the refresh state machine and the activity log."""

from oddsboard.scheduler.manager import SchedulerManager, scheduler_manager
from oddsboard.scheduler.refresh import (
    INTERVAL_OPTIONS,
    Controls,
    FetchSlot,
    RefreshBlockedError,
    RefreshOutcome,
    RefreshScheduler,
    RefreshState,
    schedule_date_options,
)

__all__ = [
    "SchedulerManager",
    "scheduler_manager",
    "INTERVAL_OPTIONS",
    "Controls",
    "FetchSlot",
    "RefreshBlockedError",
    "RefreshOutcome",
    "RefreshScheduler",
    "RefreshState",
    "schedule_date_options",
]
