"""
Startup Coordinator

Brings exchange rates up to date when the service starts:

1. If no rate was stored in the last few days, run a full spot refresh
   and wait for it (portfolio values depend on it)
2. Hand every user holding foreign currencies to the backfill queue;
   backfills finish in the background

Nothing here raises; problems are logged and reported.
"""
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from loguru import logger

from fxsync.config import settings
from fxsync.core.clock import Clock, system_clock
from fxsync.db.database import async_session_maker
from fxsync.db.repositories.exchange_rate import ExchangeRateRepository
from fxsync.schemas.exchange_rate import RateRefreshSummary
from fxsync.services.backfill_queue import BackfillQueue, get_backfill_queue
from fxsync.services.currency_usage import CurrencyUsageResolver
from fxsync.services.rate_refresh import RateRefreshService, get_rate_refresh_service


@dataclass
class StartupReport:
    """What the startup run did."""
    refreshed: bool = False
    refresh_summary: Optional[RateRefreshSummary] = None
    backfill_users: list[int] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class StartupCoordinator:
    """
    Runs the startup rate sync.

    Usage:
        coordinator = get_startup_coordinator()
        report = await coordinator.run()
    """

    def __init__(
        self,
        refresh_service: RateRefreshService,
        backfill_queue: BackfillQueue,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = system_clock,
        recent_window_days: int = settings.RECENT_RATES_WINDOW_DAYS,
        default_currency: str = settings.DEFAULT_CURRENCY,
    ):
        self.refresh_service = refresh_service
        self.backfill_queue = backfill_queue
        self.session_factory = session_factory
        self.clock = clock
        self.recent_window_days = recent_window_days
        self.default_currency = default_currency

    async def _ensure_recent_rates(self, report: StartupReport) -> None:
        since = self.clock.today() - timedelta(days=self.recent_window_days)

        try:
            async with self.session_factory() as db:
                has_recent = await ExchangeRateRepository(db).has_recent_rates(since)

            if has_recent:
                logger.info(f"Exchange rates are current (stored since {since}), skipping refresh")
                return

            logger.info(f"No exchange rates since {since}, refreshing")
            summary = await self.refresh_service.refresh_all_rates()
            report.refreshed = True
            report.refresh_summary = summary
            logger.info(
                f"Startup refresh: {summary.updated}/{summary.total_pairs} pairs updated, "
                f"{summary.failed} failed"
            )

        except Exception as e:
            logger.error(f"Startup rate refresh failed: {e}")
            report.errors.append(f"refresh: {e}")

    async def _queue_backfills(self, report: StartupReport) -> None:
        try:
            async with self.session_factory() as db:
                user_ids = await CurrencyUsageResolver(db).users_with_foreign_currencies(self.default_currency)
        except Exception as e:
            logger.error(f"Could not find users needing a backfill: {e}")
            report.errors.append(f"backfill: {e}")
            return

        for user_id in user_ids:
            try:
                await self.backfill_queue.enqueue(user_id)
                report.backfill_users.append(user_id)
            except Exception as e:
                logger.error(f"Could not queue backfill for user {user_id}: {e}")
                report.errors.append(f"backfill user {user_id}: {e}")

        if user_ids:
            logger.info(f"Queued historical backfill for {len(user_ids)} user(s)")

    async def run(self) -> StartupReport:
        """Run the startup sync. Never raises."""
        report = StartupReport()
        await self._ensure_recent_rates(report)
        await self._queue_backfills(report)
        return report


# Singleton instance
_startup_coordinator: Optional[StartupCoordinator] = None


def get_startup_coordinator() -> StartupCoordinator:
    """Get the singleton startup coordinator."""
    global _startup_coordinator
    if _startup_coordinator is None:
        _startup_coordinator = StartupCoordinator(
            refresh_service=get_rate_refresh_service(),
            backfill_queue=get_backfill_queue(),
            session_factory=async_session_maker,
        )
    return _startup_coordinator
