"""
Currency Repository

Read access to the currency reference list.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fxsync.db.models.currency import Currency


class CurrencyRepository:
    """Repository for Currency reads."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_currencies(self) -> list[Currency]:
        """Get all active currencies ordered by code."""
        result = await self.db.execute(
            select(Currency).where(Currency.is_active.is_(True)).order_by(Currency.code)
        )
        return list(result.scalars().all())
