"""
fxsync - Dependencies
Dependency injection for FastAPI endpoints
"""
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fxsync.db.database import async_session_maker
from fxsync.db.repositories.currency import CurrencyRepository
from fxsync.db.repositories.exchange_rate import ExchangeRateRepository
from fxsync.services.backfill_queue import BackfillQueue, get_backfill_queue
from fxsync.services.rate_refresh import RateRefreshService, get_rate_refresh_service


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_exchange_rate_repository(
    db: AsyncSession = Depends(get_db)
) -> ExchangeRateRepository:
    return ExchangeRateRepository(db)


async def get_currency_repository(
    db: AsyncSession = Depends(get_db)
) -> CurrencyRepository:
    return CurrencyRepository(db)


def get_refresh_service() -> RateRefreshService:
    return get_rate_refresh_service()


def get_queue() -> BackfillQueue:
    return get_backfill_queue()
