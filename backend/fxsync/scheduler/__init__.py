"""
Task Scheduler

Recurring exchange rate jobs.
"""
from fxsync.scheduler.rate_scheduler import (
    RateScheduler,
    FX_REFRESH_JOB_ID,
    get_rate_scheduler,
)
from fxsync.scheduler.jobs import scheduled_rate_refresh

__all__ = [
    "RateScheduler",
    "FX_REFRESH_JOB_ID",
    "get_rate_scheduler",
    "scheduled_rate_refresh",
]
