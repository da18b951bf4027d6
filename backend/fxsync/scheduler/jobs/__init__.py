"""
Scheduled Jobs
"""
from fxsync.scheduler.jobs.fx_rates_job import scheduled_rate_refresh

__all__ = [
    "scheduled_rate_refresh",
]
