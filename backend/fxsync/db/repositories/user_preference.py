"""
User Preference Repository
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from fxsync.db.models.user import UserPreference


class UserPreferenceRepository:
    """Read access to user preferences."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_user_id(self, user_id: int) -> Optional[UserPreference]:
        result = await self.db.execute(
            select(UserPreference).where(UserPreference.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_default_currency(self, user_id: int, fallback: str) -> str:
        """
        Get the user's default currency.

        Args:
            user_id: User ID
            fallback: Currency to use when the user has not chosen one

        Returns:
            Upper-case currency code
        """
        preference = await self.get_by_user_id(user_id)
        if preference and preference.default_currency:
            return preference.default_currency.upper()
        return fallback.upper()
