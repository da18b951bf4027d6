"""
Unit Tests - Rate Scheduler and FX Rates Job
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fxsync.scheduler.rate_scheduler import RateScheduler, FX_REFRESH_JOB_ID, get_rate_scheduler
from fxsync.scheduler.jobs.fx_rates_job import scheduled_rate_refresh
from fxsync.schemas.exchange_rate import RateRefreshSummary, RateUpdateResult


async def _noop():
    return None


class TestRateScheduler:
    """Tests for RateScheduler."""

    @pytest.fixture
    def scheduler(self):
        return RateScheduler(timezone="America/New_York")

    def test_registers_daily_refresh(self, scheduler):
        scheduler.add_daily_refresh_job(_noop)

        job = scheduler.scheduler.get_job(FX_REFRESH_JOB_ID)
        assert job is not None
        fields = {f.name: str(f) for f in job.trigger.fields}
        assert fields["day_of_week"] == "mon-fri"
        assert fields["hour"] == "17"
        assert fields["minute"] == "0"
        assert str(job.trigger.timezone) == "America/New_York"

    def test_custom_time(self, scheduler):
        scheduler.add_daily_refresh_job(_noop, hour=18, minute=30)

        status = scheduler.get_jobs_status()
        assert status["jobs"][FX_REFRESH_JOB_ID]["schedule"] == "18:30 America/New_York mon-fri"

    def test_re_registering_replaces(self, scheduler):
        scheduler.add_daily_refresh_job(_noop)
        scheduler.add_daily_refresh_job(_noop, hour=9)

        assert len(scheduler.scheduler.get_jobs()) == 1

    @pytest.mark.asyncio
    async def test_start_and_stop(self, scheduler):
        scheduler.add_daily_refresh_job(_noop)
        scheduler.start()
        try:
            assert scheduler.is_running is True
            status = scheduler.get_jobs_status()
            assert status["is_running"] is True
            assert status["jobs"][FX_REFRESH_JOB_ID]["next_run"] is not None
        finally:
            scheduler.stop()

        assert scheduler.is_running is False

    def test_singleton(self):
        assert get_rate_scheduler() is get_rate_scheduler()


class TestScheduledRateRefresh:
    """Tests for the scheduled job function."""

    @pytest.mark.asyncio
    async def test_runs_refresh(self, clock):
        summary = RateRefreshSummary(
            total_pairs=2,
            updated=1,
            failed=1,
            results=[
                RateUpdateResult(pair="EUR/USD", success=True),
                RateUpdateResult(pair="JPY/USD", success=False, error="No rate data available"),
            ],
            last_updated=clock.now(),
        )
        service = MagicMock()
        service.refresh_all_rates = AsyncMock(return_value=summary)

        with patch("fxsync.scheduler.jobs.fx_rates_job.get_rate_refresh_service", return_value=service):
            result = await scheduled_rate_refresh()

        assert result is summary

    @pytest.mark.asyncio
    async def test_swallows_errors(self):
        service = MagicMock()
        service.refresh_all_rates = AsyncMock(side_effect=RuntimeError("ledger offline"))

        with patch("fxsync.scheduler.jobs.fx_rates_job.get_rate_refresh_service", return_value=service):
            result = await scheduled_rate_refresh()

        assert result is None
