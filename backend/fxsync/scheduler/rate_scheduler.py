"""
Exchange Rate Scheduler

Runs the daily spot refresh after the New York close on business days
(default 17:00 America/New_York, Mon-Fri).
"""
from typing import Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor
from loguru import logger

from fxsync.config import settings


FX_REFRESH_JOB_ID = "fx_rate_refresh"


class RateScheduler:
    """
    Scheduler for recurring exchange rate jobs.

    Usage:
        scheduler = get_rate_scheduler()
        scheduler.add_daily_refresh_job(scheduled_rate_refresh)
        scheduler.start()
    """

    def __init__(self, timezone: str = settings.TIMEZONE):
        self.timezone = timezone
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False
        self._registered_jobs: dict[str, dict] = {}

    def initialize(self) -> None:
        """Initialize the scheduler with job stores and executors."""
        jobstores = {
            'default': MemoryJobStore()
        }
        executors = {
            'default': AsyncIOExecutor()
        }
        job_defaults = {
            'coalesce': True,  # Combine multiple missed runs into one
            'max_instances': 1,
            'misfire_grace_time': 60 * 5
        }

        self.scheduler = AsyncIOScheduler(
            jobstores=jobstores,
            executors=executors,
            job_defaults=job_defaults,
            timezone=self.timezone
        )

        logger.info("Rate scheduler initialized")

    def start(self) -> None:
        """Start the scheduler. Needs a running event loop."""
        if not self.scheduler:
            self.initialize()

        if not self._is_running:
            self.scheduler.start()
            self._is_running = True
            logger.info("Rate scheduler started")

    def stop(self) -> None:
        """Stop the scheduler without waiting for a running job."""
        if self.scheduler and self._is_running:
            self.scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("Rate scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._is_running

    def add_daily_refresh_job(
        self,
        func: Callable,
        job_id: str = FX_REFRESH_JOB_ID,
        hour: int = settings.FX_REFRESH_HOUR,
        minute: int = settings.FX_REFRESH_MINUTE,
        day_of_week: str = settings.FX_REFRESH_DAYS,
    ) -> None:
        """
        Add the daily refresh job.

        Args:
            func: Async function to execute
            job_id: Unique identifier for the job
            hour: Hour to run, in the scheduler timezone
            minute: Minute to run
            day_of_week: Cron day-of-week expression
        """
        if not self.scheduler:
            self.initialize()

        trigger = CronTrigger(
            hour=hour,
            minute=minute,
            day_of_week=day_of_week,
            timezone=self.timezone
        )

        self.scheduler.add_job(
            func,
            trigger=trigger,
            id=job_id,
            name=f"FX refresh: {job_id}",
            replace_existing=True,
        )

        schedule = f'{hour:02d}:{minute:02d} {self.timezone} {day_of_week}'
        self._registered_jobs[job_id] = {
            'type': 'daily_refresh',
            'schedule': schedule
        }
        logger.info(f"Registered exchange rate refresh job: {job_id} at {schedule}")

    def get_jobs_status(self) -> dict:
        """Get status of all registered jobs."""
        status = {
            'is_running': self._is_running,
            'jobs': {}
        }

        if self.scheduler:
            for job in self.scheduler.get_jobs():
                next_run = getattr(job, 'next_run_time', None)
                status['jobs'][job.id] = {
                    'name': job.name,
                    'next_run': next_run.isoformat() if next_run else None,
                    **self._registered_jobs.get(job.id, {})
                }

        return status


# Singleton instance
_rate_scheduler: Optional[RateScheduler] = None


def get_rate_scheduler() -> RateScheduler:
    """Get the singleton rate scheduler instance."""
    global _rate_scheduler
    if _rate_scheduler is None:
        _rate_scheduler = RateScheduler()
    return _rate_scheduler
