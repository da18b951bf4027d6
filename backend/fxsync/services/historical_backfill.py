"""
Historical Backfill Service

Loads daily history for a user's foreign currencies against the user's
default currency, back to the earliest date the user's ledger needs.

Strategy:
- Each foreign currency is paired with the default currency and stored in
  the canonical (sorted) direction, the same one the spot refresh writes:
  EUR for a USD user is EUR/USD, USD for a CAD user is CAD/USD
- Pairs run one at a time with a pause after each; full-history calls
  are heavy and the provider rate-limits them
- A pair with backfilled rows already counts as done (see coverage modes);
  rows written by the spot refresh carry another source and do not count
- Points before the cutoff are dropped, duplicate dates keep the first
- Rows are written in batches through the upsert
"""
import asyncio
import time
from datetime import date
from typing import Literal, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from loguru import logger

from fxsync.config import settings
from fxsync.core.clock import Clock, system_clock
from fxsync.db.database import async_session_maker
from fxsync.db.repositories.exchange_rate import ExchangeRateRepository, canonical_pair
from fxsync.db.repositories.user_preference import UserPreferenceRepository
from fxsync.providers.yahoo import HistoricalRate, YahooFinanceClient, pair_symbol
from fxsync.schemas.exchange_rate import BackfillPairResult, BackfillSummary
from fxsync.services.currency_usage import CurrencyUsageResolver


CoverageMode = Literal["exists", "floor"]


def select_backfill_points(series: Sequence[HistoricalRate], cutoff: date) -> list[HistoricalRate]:
    """
    Points on or after the cutoff, one per calendar date.

    When the provider repeats a date, the first occurrence wins.
    """
    seen: dict[date, HistoricalRate] = {}
    for point in series:
        if point.date < cutoff or point.date in seen:
            continue
        seen[point.date] = point
    return list(seen.values())


class HistoricalBackfillService:
    """
    Service for backfilling historical exchange rates for a user.

    Usage:
        service = HistoricalBackfillService(YahooFinanceClient(), async_session_maker)
        summary = await service.backfill_historical_rates(user_id=42)
    """

    def __init__(
        self,
        provider: YahooFinanceClient,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = system_clock,
        call_timeout: float = settings.HISTORICAL_TIMEOUT_SECONDS,
        pair_delay: float = settings.BACKFILL_PAIR_DELAY_SECONDS,
        batch_size: int = settings.BACKFILL_BATCH_SIZE,
        coverage_mode: CoverageMode = settings.BACKFILL_COVERAGE_MODE,
        default_currency: str = settings.DEFAULT_CURRENCY,
        source: str = settings.HISTORICAL_RATE_SOURCE,
    ):
        self.provider = provider
        self.session_factory = session_factory
        self.clock = clock
        self.call_timeout = call_timeout
        self.pair_delay = pair_delay
        self.batch_size = batch_size
        self.coverage_mode = coverage_mode
        self.default_currency = default_currency.upper()
        self.source = source

    async def _is_covered(self, from_currency: str, to_currency: str, cutoff: date) -> bool:
        async with self.session_factory() as db:
            repo = ExchangeRateRepository(db)
            if self.coverage_mode == "floor":
                earliest = await repo.get_earliest_rate_date(from_currency, to_currency, source=self.source)
                return earliest is not None and earliest <= cutoff
            return await repo.has_any_rate(from_currency, to_currency, source=self.source)

    async def _backfill_pair(self, from_currency: str, to_currency: str, cutoff: date) -> BackfillPairResult:
        """
        Load history for one pair in its stored direction. Never raises.

        No session is held while the provider call is in flight.
        """
        label = f"{from_currency}/{to_currency}"

        try:
            if await self._is_covered(from_currency, to_currency, cutoff):
                logger.debug(f"{label} already has backfilled rates, skipping")
                return BackfillPairResult(pair=label, success=True, rates_loaded=0)

            try:
                series = await asyncio.wait_for(
                    self.provider.fetch_historical_series(pair_symbol(from_currency, to_currency)),
                    timeout=self.call_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(f"History for {label} timed out after {self.call_timeout}s")
                return BackfillPairResult(
                    pair=label,
                    success=False,
                    error=f"Timed out after {self.call_timeout}s",
                )

            if series is None:
                logger.warning(f"No historical data available for {label}")
                return BackfillPairResult(pair=label, success=False, error="No historical data available")

            points = select_backfill_points(series, cutoff)
            async with self.session_factory() as db:
                loaded = await ExchangeRateRepository(db).bulk_upsert_rates(
                    from_currency,
                    to_currency,
                    [(point.date, point.close) for point in points],
                    source=self.source,
                    batch_size=self.batch_size,
                    now=self.clock.now(),
                )

        except Exception as e:
            logger.error(f"Backfill failed for {label}: {e}")
            return BackfillPairResult(pair=label, success=False, error=str(e))

        logger.info(f"Loaded {loaded} historical rates for {label} since {cutoff}")
        return BackfillPairResult(pair=label, success=True, rates_loaded=loaded)

    async def backfill_historical_rates(
        self,
        user_id: int,
        account_ids: Optional[Sequence[int]] = None,
    ) -> BackfillSummary:
        """
        Backfill history for every foreign currency the user holds.

        Args:
            user_id: User whose ledger drives the backfill
            account_ids: Only consider these accounts (all open accounts if empty)

        Returns:
            BackfillSummary with per-pair results

        Raises:
            CurrencyResolutionError: if the user's currencies could not be determined
        """
        started = time.monotonic()

        async with self.session_factory() as db:
            default_currency = await UserPreferenceRepository(db).get_default_currency(
                user_id, fallback=self.default_currency
            )
            cutoffs = await CurrencyUsageResolver(db).non_default_currencies_with_earliest_dates(
                user_id, default_currency, account_ids
            )

        if not cutoffs:
            logger.debug(f"User {user_id} has no foreign currencies to backfill")
            return BackfillSummary()

        logger.info(
            f"Starting historical backfill for user {user_id}: "
            f"{len(cutoffs)} pair(s) against {default_currency}"
        )

        results: list[BackfillPairResult] = []
        for currency, cutoff in cutoffs.items():
            from_currency, to_currency = canonical_pair(currency, default_currency)
            results.append(await self._backfill_pair(from_currency, to_currency, cutoff))
            await asyncio.sleep(self.pair_delay)

        successful = sum(1 for result in results if result.success)
        summary = BackfillSummary(
            total_pairs=len(results),
            successful=successful,
            failed=len(results) - successful,
            total_rates_loaded=sum(result.rates_loaded or 0 for result in results),
            results=results,
        )

        duration_ms = (time.monotonic() - started) * 1000
        logger.info(
            f"Historical backfill for user {user_id} completed in {duration_ms:.0f}ms: "
            f"{summary.successful} successful, {summary.failed} failed, "
            f"{summary.total_rates_loaded} rates loaded"
        )
        return summary


# Singleton instance
_backfill_service: Optional[HistoricalBackfillService] = None


def get_backfill_service() -> HistoricalBackfillService:
    """Get the singleton historical backfill service."""
    global _backfill_service
    if _backfill_service is None:
        _backfill_service = HistoricalBackfillService(YahooFinanceClient(), async_session_maker)
    return _backfill_service
