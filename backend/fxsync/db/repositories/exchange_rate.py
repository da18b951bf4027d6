"""
Exchange Rate Repository

Database operations for the daily exchange rate table. This is the only
writer of exchange_rates rows; every write is an upsert keyed on
(from_currency, to_currency, rate_date).
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from loguru import logger

from fxsync.db.models.exchange_rate import ExchangeRate
from fxsync.utils.exceptions import RateStoreError


_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def canonical_pair(currency_a: str, currency_b: str) -> tuple[str, str]:
    """
    Stored direction for a pair of currencies: codes in sorted order.

    canonical_pair("USD", "cad") -> ("CAD", "USD")
    """
    first, second = sorted((currency_a.upper(), currency_b.upper()))
    return first, second


class ExchangeRateRepository:
    """
    Repository for ExchangeRate database operations.

    Rates for a pair are stored in one direction only, the one given by
    canonical_pair(). Readers that need the other direction go through
    get_latest_rate(), which inverts.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # =====================
    # Writes
    # =====================

    def _upsert_statement(self, rows: list[dict]):
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise RateStoreError(f"Upsert not supported on dialect '{dialect}'")

        stmt = insert(ExchangeRate).values(rows)
        return stmt.on_conflict_do_update(
            index_elements=["from_currency", "to_currency", "rate_date"],
            set_={
                "rate": stmt.excluded.rate,
                "source": stmt.excluded.source,
                "updated_at": stmt.excluded.updated_at,
            },
        )

    async def upsert_rate(
        self,
        from_currency: str,
        to_currency: str,
        rate: Decimal,
        rate_date: date,
        source: str = "yahoo_finance",
        now: Optional[datetime] = None,
    ) -> None:
        """
        Insert or update the rate for one pair on one date.

        Args:
            from_currency: Currency converted from
            to_currency: Currency converted to
            rate: 1 from_currency = rate to_currency
            rate_date: Date the rate applies to
            source: Source identifier
            now: Write timestamp (defaults to current UTC time)
        """
        await self.bulk_upsert_rates(
            from_currency,
            to_currency,
            [(rate_date, rate)],
            source=source,
            now=now,
        )
        logger.debug(f"Upserted rate: {from_currency}/{to_currency} {rate_date} = {rate}")

    async def bulk_upsert_rates(
        self,
        from_currency: str,
        to_currency: str,
        points: Iterable[tuple[date, Decimal]],
        source: str = "yahoo_finance",
        batch_size: int = 500,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Insert or update many dated rates for a single pair.

        Rows are written in batches of batch_size, one statement and one
        commit per batch. Existing (from, to, date) rows get their rate and
        source overwritten.

        Returns:
            Number of rows written

        Raises:
            RateStoreError: if a batch could not be written
        """
        if now is None:
            now = datetime.now(timezone.utc)

        base = from_currency.upper()
        quote = to_currency.upper()
        rows = [
            {
                "from_currency": base,
                "to_currency": quote,
                "rate": Decimal(str(rate)),
                "rate_date": rate_date,
                "source": source,
                "created_at": now,
                "updated_at": now,
            }
            for rate_date, rate in points
        ]

        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            try:
                await self.db.execute(self._upsert_statement(batch))
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise RateStoreError(
                    f"Failed to write {base}/{quote} rates: {e}",
                    details={"pair": f"{base}/{quote}", "batch_start": start},
                ) from e

        return len(rows)

    # =====================
    # Coverage checks
    # =====================

    def _pair_filter(self, from_currency: str, to_currency: str, source: Optional[str]) -> list:
        conditions = [
            ExchangeRate.from_currency == from_currency.upper(),
            ExchangeRate.to_currency == to_currency.upper(),
        ]
        if source is not None:
            conditions.append(ExchangeRate.source == source)
        return conditions

    async def has_any_rate(
        self,
        from_currency: str,
        to_currency: str,
        source: Optional[str] = None,
    ) -> bool:
        """True if at least one row exists for the pair in this direction (optionally from one source)."""
        result = await self.db.execute(
            select(ExchangeRate.id).where(*self._pair_filter(from_currency, to_currency, source)).limit(1)
        )
        return result.first() is not None

    async def get_earliest_rate_date(
        self,
        from_currency: str,
        to_currency: str,
        source: Optional[str] = None,
    ) -> Optional[date]:
        """Earliest stored rate_date for the pair, or None."""
        result = await self.db.execute(
            select(func.min(ExchangeRate.rate_date)).where(
                *self._pair_filter(from_currency, to_currency, source)
            )
        )
        return result.scalar_one_or_none()

    async def has_recent_rates(self, since: date) -> bool:
        """True if any pair has a rate dated on or after `since`."""
        result = await self.db.execute(
            select(ExchangeRate.id).where(ExchangeRate.rate_date >= since).limit(1)
        )
        return result.first() is not None

    # =====================
    # Reads
    # =====================

    async def _get_latest_row(self, from_currency: str, to_currency: str) -> Optional[ExchangeRate]:
        result = await self.db.execute(
            select(ExchangeRate)
            .where(
                ExchangeRate.from_currency == from_currency,
                ExchangeRate.to_currency == to_currency,
            )
            .order_by(ExchangeRate.rate_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_latest_rate(self, from_currency: str, to_currency: str) -> Optional[Decimal]:
        """
        Get the most recent rate for converting from_currency into to_currency.

        Compares the latest row in each direction and uses the newer one,
        inverting it when it is stored as the reversed pair. On equal dates
        the requested direction wins.

        Returns:
            Decimal rate, Decimal("1") for the same currency, or None if the
            pair has never been stored in either direction
        """
        base = from_currency.upper()
        quote = to_currency.upper()
        if base == quote:
            return Decimal("1")

        row = await self._get_latest_row(base, quote)
        reverse = await self._get_latest_row(quote, base)

        if row is None and reverse is None:
            logger.debug(f"No exchange rate stored for {base}/{quote} in either direction")
            return None

        if reverse is None or (row is not None and row.rate_date >= reverse.rate_date):
            return Decimal(row.rate)
        return reverse.inverse_rate

    async def get_latest_rates(self) -> list[ExchangeRate]:
        """Most recent row for every stored pair."""
        latest = (
            select(
                ExchangeRate.from_currency,
                ExchangeRate.to_currency,
                func.max(ExchangeRate.rate_date).label("rate_date"),
            )
            .group_by(ExchangeRate.from_currency, ExchangeRate.to_currency)
            .subquery()
        )
        result = await self.db.execute(
            select(ExchangeRate)
            .join(
                latest,
                and_(
                    ExchangeRate.from_currency == latest.c.from_currency,
                    ExchangeRate.to_currency == latest.c.to_currency,
                    ExchangeRate.rate_date == latest.c.rate_date,
                ),
            )
            .order_by(ExchangeRate.from_currency, ExchangeRate.to_currency)
        )
        return list(result.scalars().all())

    async def get_rate_history(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ExchangeRate]:
        """Rates within an inclusive date range (either bound optional)."""
        query = select(ExchangeRate)
        if start_date is not None:
            query = query.where(ExchangeRate.rate_date >= start_date)
        if end_date is not None:
            query = query.where(ExchangeRate.rate_date <= end_date)

        result = await self.db.execute(
            query.order_by(
                ExchangeRate.rate_date,
                ExchangeRate.from_currency,
                ExchangeRate.to_currency,
            )
        )
        return list(result.scalars().all())

    async def get_last_update_time(self) -> Optional[datetime]:
        """When any rate was last written."""
        result = await self.db.execute(
            select(func.max(func.coalesce(ExchangeRate.updated_at, ExchangeRate.created_at)))
        )
        return result.scalar_one_or_none()
