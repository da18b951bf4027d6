"""
Rate Refresh Service

Keeps today's spot rate current for every pair of currencies in use.

Strategy:
- Discover currencies from open accounts and held securities
- Build each unordered pair once, in a fixed (sorted) direction
- Fetch all spot quotes concurrently; a spot quote is one cheap call
- Upsert (from, to, today) per pair, each in its own session
- A missing quote or failed write marks that pair failed, nothing more

There are no retries within a run; the next scheduled or startup run
picks up whatever failed.
"""
import asyncio
import time
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from loguru import logger

from fxsync.config import settings
from fxsync.core.clock import Clock, system_clock
from fxsync.db.database import async_session_maker
from fxsync.db.repositories.exchange_rate import ExchangeRateRepository
from fxsync.providers.yahoo import YahooFinanceClient, pair_symbol
from fxsync.schemas.exchange_rate import RateRefreshSummary, RateUpdateResult
from fxsync.services.currency_usage import CurrencyUsageResolver


def build_currency_pairs(codes: Iterable[str]) -> list[tuple[str, str]]:
    """
    All unordered pairs of the given codes, each exactly once.

    Codes are de-duplicated and sorted first, so every pair comes out in
    its stored direction (see canonical_pair):
    ['USD', 'EUR', 'CAD'] -> [('CAD', 'EUR'), ('CAD', 'USD'), ('EUR', 'USD')]
    """
    ordered = sorted({code.upper() for code in codes})
    return [
        (ordered[i], ordered[j])
        for i in range(len(ordered))
        for j in range(i + 1, len(ordered))
    ]


class RateRefreshService:
    """
    Service for refreshing current exchange rates.

    Usage:
        service = RateRefreshService(YahooFinanceClient(), async_session_maker)
        summary = await service.refresh_all_rates()
    """

    def __init__(
        self,
        provider: YahooFinanceClient,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Clock = system_clock,
        call_timeout: float = settings.SPOT_TIMEOUT_SECONDS,
        source: str = settings.RATE_SOURCE,
    ):
        """
        Args:
            provider: Quote provider client
            session_factory: Creates database sessions
            clock: Time source for the rate date and summary timestamp
            call_timeout: Upper bound on a single provider call, in seconds
            source: Provenance tag stored with each rate
        """
        self.provider = provider
        self.session_factory = session_factory
        self.clock = clock
        self.call_timeout = call_timeout
        self.source = source

    async def _fetch_spot(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        if from_currency == to_currency:
            return Decimal("1.0")
        return await asyncio.wait_for(
            self.provider.fetch_spot(pair_symbol(from_currency, to_currency)),
            timeout=self.call_timeout,
        )

    async def _refresh_pair(self, from_currency: str, to_currency: str) -> RateUpdateResult:
        """Fetch and store one pair. Never raises."""
        label = f"{from_currency}/{to_currency}"

        try:
            rate = await self._fetch_spot(from_currency, to_currency)
        except asyncio.TimeoutError:
            logger.warning(f"Spot quote for {label} timed out after {self.call_timeout}s")
            return RateUpdateResult(pair=label, success=False, error=f"Timed out after {self.call_timeout}s")
        except Exception as e:
            logger.warning(f"Spot quote for {label} failed: {e}")
            return RateUpdateResult(pair=label, success=False, error=str(e))

        if rate is None:
            return RateUpdateResult(pair=label, success=False, error="No rate data available")

        try:
            async with self.session_factory() as db:
                repo = ExchangeRateRepository(db)
                await repo.upsert_rate(
                    from_currency=from_currency,
                    to_currency=to_currency,
                    rate=rate,
                    rate_date=self.clock.today(),
                    source=self.source,
                    now=self.clock.now(),
                )
        except Exception as e:
            logger.error(f"Failed to save rate {label}: {e}")
            return RateUpdateResult(pair=label, success=False, error=str(e))

        return RateUpdateResult(pair=label, success=True, rate=rate)

    async def refresh_all_rates(self) -> RateRefreshSummary:
        """
        Refresh the spot rate for every pair of currencies in use.

        Returns:
            RateRefreshSummary with per-pair results

        Raises:
            CurrencyResolutionError: if the currencies in use could not be determined
        """
        started = time.monotonic()
        logger.info("Starting exchange rate refresh")

        async with self.session_factory() as db:
            codes = await CurrencyUsageResolver(db).used_currency_codes()

        logger.info(f"Currencies in use: {', '.join(sorted(codes)) or 'none'}")

        pairs = build_currency_pairs(codes)
        if not pairs:
            return RateRefreshSummary(
                total_pairs=0,
                updated=0,
                failed=0,
                results=[],
                last_updated=self.clock.now(),
            )

        results = await asyncio.gather(
            *(self._refresh_pair(from_currency, to_currency) for from_currency, to_currency in pairs)
        )

        updated = sum(1 for result in results if result.success)
        failed = len(results) - updated

        duration_ms = (time.monotonic() - started) * 1000
        logger.info(
            f"Exchange rate refresh completed in {duration_ms:.0f}ms: "
            f"{updated} updated, {failed} failed"
        )

        return RateRefreshSummary(
            total_pairs=len(pairs),
            updated=updated,
            failed=failed,
            results=list(results),
            last_updated=self.clock.now(),
        )


# Singleton instance
_rate_refresh_service: Optional[RateRefreshService] = None


def get_rate_refresh_service() -> RateRefreshService:
    """Get the singleton rate refresh service."""
    global _rate_refresh_service
    if _rate_refresh_service is None:
        _rate_refresh_service = RateRefreshService(YahooFinanceClient(), async_session_maker)
    return _rate_refresh_service
