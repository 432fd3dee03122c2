"""APScheduler-backed timers for the refresh loop."""

import logging
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from oddsboard.config import MELB_TZ

logger = logging.getLogger(__name__)


class SchedulerManager:
    """Manages background jobs on the running asyncio loop.

    Also serves as the timer backend of :class:`RefreshScheduler` through
    :meth:`every` and :meth:`cancel`.
    """

    def __init__(self):
        self.scheduler = AsyncIOScheduler(timezone=MELB_TZ)
        self._started = False

    async def start(self) -> None:
        """Start the scheduler."""
        if not self._started:
            self.scheduler.start()
            self._started = True
            logger.info("Scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler."""
        if self._started:
            self.scheduler.shutdown(wait=False)
            self._started = False
            logger.info("Scheduler stopped")

    def add_job(
        self,
        job_id: str,
        func: Callable,
        **trigger_kwargs
    ) -> None:
        """Add (or replace) an interval job.

        Args:
            job_id: Unique identifier for the job
            func: The async function to run
            **trigger_kwargs: Arguments for the IntervalTrigger
        """
        trigger = IntervalTrigger(**trigger_kwargs)

        # A tick that is still running when the next is due gets skipped
        self.scheduler.add_job(
            func,
            trigger,
            id=job_id,
            replace_existing=True,
            misfire_grace_time=5,
            coalesce=True,
            max_instances=1,
        )
        logger.debug(f"Added job: {job_id} with interval {trigger_kwargs}")

    def remove_job(self, job_id: str) -> None:
        """Remove a job from the scheduler."""
        if self.scheduler.get_job(job_id) is None:
            logger.debug(f"No job to remove: {job_id}")
            return
        self.scheduler.remove_job(job_id)
        logger.debug(f"Removed job: {job_id}")

    # Timer interface used by RefreshScheduler

    def every(self, job_id: str, seconds: float, callback: Callable[[], Awaitable[None]]) -> None:
        self.add_job(job_id, callback, seconds=seconds)

    def cancel(self, job_id: str) -> None:
        self.remove_job(job_id)


scheduler_manager = SchedulerManager()
