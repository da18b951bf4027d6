"""
fxsync - Test Configuration
Shared fixtures and test configuration.
"""
import os
import sys
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock

# Add backend to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment
os.environ["APP_ENV"] = "testing"
os.environ["LOG_TO_FILE"] = "false"
os.environ["ENABLE_STARTUP_SYNC"] = "false"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["BACKFILL_PAIR_DELAY_SECONDS"] = "0"

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from fxsync.db.database import Base
from fxsync.db.models import (
    User,
    UserPreference,
    Account,
    Transaction,
    Security,
    Holding,
    InvestmentTransaction,
    Currency,
    ExchangeRate,
)


# =========================
# Clock
# =========================

class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 4, 2, 18, 0, tzinfo=timezone.utc))


# =========================
# Database (SQLite file per test)
# =========================

@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory bound to a fresh SQLite database.

    A file database is used so that concurrent sessions see each other's
    committed rows.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'fxsync_test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def stored_rate(session_factory):
    """Look up the stored row for (from, to, date) in a fresh session, or None."""
    async def lookup(from_currency: str, to_currency: str, rate_date: date) -> Optional[ExchangeRate]:
        async with session_factory() as session:
            result = await session.execute(
                select(ExchangeRate).where(
                    ExchangeRate.from_currency == from_currency,
                    ExchangeRate.to_currency == to_currency,
                    ExchangeRate.rate_date == rate_date,
                )
            )
            return result.scalar_one_or_none()
    return lookup


# =========================
# Ledger Seeding
# =========================

class LedgerBuilder:
    """Writes ledger rows for a test scenario."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _add(self, obj):
        async with self.session_factory() as session:
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
        return obj

    async def user(self, user_id: int, default_currency: Optional[str] = None) -> User:
        user = await self._add(User(id=user_id, email=f"user{user_id}@example.com"))
        if default_currency is not None:
            await self._add(UserPreference(user_id=user_id, default_currency=default_currency))
        return user

    async def account(self, user_id: int, currency: str, is_closed: bool = False, name: str = "Account") -> Account:
        return await self._add(
            Account(user_id=user_id, name=name, currency_code=currency, is_closed=is_closed)
        )

    async def transaction(self, account_id: int, on: date, amount: str = "100.00") -> Transaction:
        return await self._add(Transaction(account_id=account_id, transaction_date=on, amount=Decimal(amount)))

    async def security(self, user_id: int, symbol: str, currency: str, is_active: bool = True) -> Security:
        return await self._add(
            Security(user_id=user_id, symbol=symbol, currency_code=currency, is_active=is_active)
        )

    async def holding(self, account_id: int, security_id: int, quantity: str = "10") -> Holding:
        return await self._add(
            Holding(account_id=account_id, security_id=security_id, quantity=Decimal(quantity))
        )

    async def investment_transaction(
        self,
        account_id: int,
        on: date,
        security_id: Optional[int] = None,
        quantity: str = "10",
    ) -> InvestmentTransaction:
        return await self._add(
            InvestmentTransaction(
                account_id=account_id,
                security_id=security_id,
                transaction_date=on,
                quantity=Decimal(quantity),
            )
        )

    async def currency(self, code: str, name: str, symbol: str, is_active: bool = True) -> Currency:
        return await self._add(Currency(code=code, name=name, symbol=symbol, is_active=is_active))


@pytest.fixture
def ledger(session_factory) -> LedgerBuilder:
    return LedgerBuilder(session_factory)


# =========================
# Quote Provider Mock
# =========================

@pytest.fixture
def provider():
    """Quote provider double; configure fetch_spot / fetch_historical_series per test."""
    mock = MagicMock()
    mock.name = "yahoo_finance"
    mock.fetch_spot = AsyncMock(return_value=None)
    mock.fetch_historical_series = AsyncMock(return_value=None)
    return mock


# =========================
# Provider Payloads
# =========================

@pytest.fixture
def sample_chart_payload() -> dict:
    """Yahoo chart payload with two daily closes and a null."""
    return {
        "chart": {
            "result": [
                {
                    "meta": {
                        "symbol": "EURUSD=X",
                        "regularMarketPrice": 1.0485,
                        "exchangeTimezoneName": "Europe/London",
                    },
                    # 2025-03-03, 2025-03-04, 2025-03-05 00:00 UTC
                    "timestamp": [1740960000, 1741046400, 1741132800],
                    "indicators": {"quote": [{"close": [1.0485, None, 1.0612]}]},
                }
            ],
            "error": None,
        }
    }
