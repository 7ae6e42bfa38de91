"""Periodic re-scan scheduling on top of APScheduler's asyncio scheduler.

States: disabled -> (start) -> scheduled -> (stop) -> disabled. The first run
fires immediately; later ticks that land while a run is still going are
skipped rather than started alongside it.
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

JOB_ID = "periodic-scan"


class PeriodicScheduler:
    def __init__(self, scheduler: AsyncIOScheduler | None = None):
        self._scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)
        self._job = None
        self._interval_minutes: float | None = None

    @property
    def enabled(self) -> bool:
        return self._job is not None

    @property
    def interval_minutes(self) -> float | None:
        return self._interval_minutes

    def start(self, interval_minutes: float, run_fn: Callable[[], Awaitable[None]]):
        """Run run_fn now and then every interval_minutes until stop().

        Must be called from within a running event loop.
        """
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        if self._job is not None:
            raise RuntimeError("Periodic scan is already enabled")

        if not self._scheduler.running:
            self._scheduler.start()

        self._job = self._scheduler.add_job(
            run_fn,
            IntervalTrigger(minutes=interval_minutes),
            id=JOB_ID,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
        )
        self._interval_minutes = interval_minutes
        logger.info("Periodic scan enabled, every %s minutes", interval_minutes)

    def stop(self):
        """Cancel pending ticks. A run already in progress is left to finish."""
        if self._job is None:
            return
        self._job.remove()
        self._job = None
        self._interval_minutes = None
        logger.info("Periodic scan disabled")

    def shutdown(self):
        self.stop()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
