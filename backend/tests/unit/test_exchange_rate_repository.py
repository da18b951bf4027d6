"""
Unit Tests - Exchange Rate Repository
Tests for the ExchangeRateRepository class against a SQLite database.
"""
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError

from fxsync.db.models.exchange_rate import ExchangeRate
from fxsync.db.repositories.exchange_rate import ExchangeRateRepository, canonical_pair
from fxsync.utils.exceptions import RateStoreError


async def _count_rows(db) -> int:
    result = await db.execute(select(func.count(ExchangeRate.id)))
    return result.scalar_one()


class TestExchangeRateRepository:
    """Tests for ExchangeRateRepository."""

    @pytest.fixture
    def repo(self, db):
        return ExchangeRateRepository(db)

    # =====================
    # upsert tests
    # =====================

    @pytest.mark.asyncio
    async def test_upsert_inserts_row(self, repo, db, stored_rate):
        await repo.upsert_rate("EUR", "USD", Decimal("1.0850"), date(2025, 4, 1))

        row = await stored_rate("EUR", "USD", date(2025, 4, 1))
        assert row is not None
        assert row.rate == Decimal("1.085")
        assert row.source == "yahoo_finance"
        assert await _count_rows(db) == 1

    @pytest.mark.asyncio
    async def test_upsert_same_key_overwrites(self, repo, db, stored_rate):
        """Upserting the same (from, to, date) twice leaves one row with the latest values."""
        await repo.upsert_rate("EUR", "USD", Decimal("1.0850"), date(2025, 4, 1), source="first")
        await repo.upsert_rate("EUR", "USD", Decimal("1.0900"), date(2025, 4, 1), source="second")

        row = await stored_rate("EUR", "USD", date(2025, 4, 1))
        assert await _count_rows(db) == 1
        assert row.rate == Decimal("1.09")
        assert row.source == "second"

    @pytest.mark.asyncio
    async def test_upsert_normalizes_codes(self, repo, stored_rate):
        await repo.upsert_rate("eur", "usd", Decimal("1.08"), date(2025, 4, 1))

        row = await stored_rate("EUR", "USD", date(2025, 4, 1))
        assert row.from_currency == "EUR"
        assert row.to_currency == "USD"

    @pytest.mark.asyncio
    async def test_upsert_sets_write_time(self, repo):
        now = datetime(2025, 4, 1, 21, 0, tzinfo=timezone.utc)
        await repo.upsert_rate("EUR", "USD", Decimal("1.08"), date(2025, 4, 1), now=now)

        last = await repo.get_last_update_time()
        assert last is not None
        assert last.replace(tzinfo=None) == now.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_bulk_upsert_batches(self, repo, db):
        points = [(date(2025, 1, day), Decimal("1.0") + Decimal(day) / 100) for day in range(1, 31)]

        written = await repo.bulk_upsert_rates("EUR", "USD", points, batch_size=7)

        assert written == 30
        assert await _count_rows(db) == 30

    @pytest.mark.asyncio
    async def test_bulk_upsert_empty(self, repo, db):
        assert await repo.bulk_upsert_rates("EUR", "USD", []) == 0
        assert await _count_rows(db) == 0

    @pytest.mark.asyncio
    async def test_bulk_upsert_database_error(self):
        """A failed batch is rolled back and reported as RateStoreError."""
        mock_db = AsyncMock()
        mock_db.get_bind = MagicMock(return_value=MagicMock(dialect=MagicMock()))
        mock_db.get_bind.return_value.dialect.name = "sqlite"
        mock_db.execute = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("database is locked")))
        repo = ExchangeRateRepository(mock_db)

        with pytest.raises(RateStoreError):
            await repo.bulk_upsert_rates("EUR", "USD", [(date(2025, 1, 1), Decimal("1.05"))])

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_dialect(self):
        mock_db = AsyncMock()
        mock_db.get_bind = MagicMock(return_value=MagicMock(dialect=MagicMock()))
        mock_db.get_bind.return_value.dialect.name = "mysql"
        repo = ExchangeRateRepository(mock_db)

        with pytest.raises(RateStoreError):
            await repo.bulk_upsert_rates("EUR", "USD", [(date(2025, 1, 1), Decimal("1.05"))])

    # =====================
    # coverage tests
    # =====================

    def test_canonical_pair_is_sorted(self):
        assert canonical_pair("USD", "cad") == ("CAD", "USD")
        assert canonical_pair("EUR", "USD") == ("EUR", "USD")

    @pytest.mark.asyncio
    async def test_has_any_rate_is_directional(self, repo):
        await repo.upsert_rate("CAD", "USD", Decimal("0.73"), date(2025, 1, 2))

        assert await repo.has_any_rate("CAD", "USD") is True
        assert await repo.has_any_rate("USD", "CAD") is False

    @pytest.mark.asyncio
    async def test_has_any_rate_by_source(self, repo):
        await repo.upsert_rate("EUR", "USD", Decimal("1.08"), date(2025, 4, 1), source="yahoo_finance")

        assert await repo.has_any_rate("EUR", "USD", source="yahoo_finance_history") is False
        assert await repo.has_any_rate("EUR", "USD", source="yahoo_finance") is True

    @pytest.mark.asyncio
    async def test_get_earliest_rate_date(self, repo):
        await repo.upsert_rate("EUR", "USD", Decimal("1.05"), date(2025, 3, 1))
        await repo.upsert_rate("EUR", "USD", Decimal("1.04"), date(2025, 1, 15))

        assert await repo.get_earliest_rate_date("EUR", "USD") == date(2025, 1, 15)
        assert await repo.get_earliest_rate_date("GBP", "USD") is None

    @pytest.mark.asyncio
    async def test_get_earliest_rate_date_by_source(self, repo):
        await repo.upsert_rate("EUR", "USD", Decimal("1.04"), date(2025, 1, 15), source="yahoo_finance")
        await repo.upsert_rate("EUR", "USD", Decimal("1.05"), date(2025, 3, 1), source="yahoo_finance_history")

        assert await repo.get_earliest_rate_date("EUR", "USD", source="yahoo_finance_history") == date(2025, 3, 1)

    @pytest.mark.asyncio
    async def test_has_recent_rates(self, repo):
        await repo.upsert_rate("EUR", "USD", Decimal("1.05"), date(2025, 3, 28))

        assert await repo.has_recent_rates(date(2025, 3, 28)) is True
        assert await repo.has_recent_rates(date(2025, 3, 29)) is False

    # =====================
    # get_latest_rate tests
    # =====================

    @pytest.mark.asyncio
    async def test_latest_rate_same_currency(self, repo):
        assert await repo.get_latest_rate("USD", "usd") == Decimal("1")

    @pytest.mark.asyncio
    async def test_latest_rate_uses_most_recent_date(self, repo):
        await repo.upsert_rate("EUR", "USD", Decimal("1.05"), date(2025, 3, 31))
        await repo.upsert_rate("EUR", "USD", Decimal("1.08"), date(2025, 4, 1))

        assert await repo.get_latest_rate("EUR", "USD") == Decimal("1.08")

    @pytest.mark.asyncio
    async def test_latest_rate_inverts_reverse_pair(self, repo):
        await repo.upsert_rate("EUR", "USD", Decimal("1.25"), date(2025, 4, 1))

        assert await repo.get_latest_rate("USD", "EUR") == Decimal("0.8")

    @pytest.mark.asyncio
    async def test_latest_rate_prefers_newer_direction(self, repo):
        """An old row in the requested direction loses to a newer reversed row."""
        await repo.upsert_rate("USD", "CAD", Decimal("1.40"), date(2025, 3, 10))
        await repo.upsert_rate("CAD", "USD", Decimal("0.80"), date(2025, 4, 1))

        assert await repo.get_latest_rate("USD", "CAD") == Decimal("1.25")
        assert await repo.get_latest_rate("CAD", "USD") == Decimal("0.8")

    @pytest.mark.asyncio
    async def test_latest_rate_same_date_keeps_requested_direction(self, repo):
        await repo.upsert_rate("USD", "CAD", Decimal("1.40"), date(2025, 4, 1))
        await repo.upsert_rate("CAD", "USD", Decimal("0.80"), date(2025, 4, 1))

        assert await repo.get_latest_rate("USD", "CAD") == Decimal("1.4")

    @pytest.mark.asyncio
    async def test_latest_rate_not_found(self, repo):
        assert await repo.get_latest_rate("XYZ", "ABC") is None

    # =====================
    # read query tests
    # =====================

    @pytest.mark.asyncio
    async def test_get_latest_rates_one_per_pair(self, repo):
        await repo.upsert_rate("EUR", "USD", Decimal("1.05"), date(2025, 3, 31))
        await repo.upsert_rate("EUR", "USD", Decimal("1.08"), date(2025, 4, 1))
        await repo.upsert_rate("GBP", "USD", Decimal("1.27"), date(2025, 3, 31))

        rates = await repo.get_latest_rates()

        assert [(r.pair, r.rate_date) for r in rates] == [
            ("EUR/USD", date(2025, 4, 1)),
            ("GBP/USD", date(2025, 3, 31)),
        ]

    @pytest.mark.asyncio
    async def test_get_rate_history_bounds(self, repo):
        for day in (1, 2, 3, 4):
            await repo.upsert_rate("EUR", "USD", Decimal("1.05"), date(2025, 3, day))

        history = await repo.get_rate_history(start_date=date(2025, 3, 2), end_date=date(2025, 3, 3))
        assert [r.rate_date for r in history] == [date(2025, 3, 2), date(2025, 3, 3)]

        assert len(await repo.get_rate_history()) == 4

    @pytest.mark.asyncio
    async def test_get_last_update_time_empty(self, repo):
        assert await repo.get_last_update_time() is None
