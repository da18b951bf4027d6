"""
Database Repositories
"""
from fxsync.db.repositories.exchange_rate import ExchangeRateRepository
from fxsync.db.repositories.currency import CurrencyRepository
from fxsync.db.repositories.user_preference import UserPreferenceRepository

__all__ = [
    "ExchangeRateRepository",
    "CurrencyRepository",
    "UserPreferenceRepository",
]
