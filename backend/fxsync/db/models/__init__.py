"""
fxsync - Database Models
"""
from fxsync.db.models.user import User, UserPreference
from fxsync.db.models.account import Account, Transaction
from fxsync.db.models.security import Security, Holding, InvestmentTransaction
from fxsync.db.models.currency import Currency
from fxsync.db.models.exchange_rate import ExchangeRate

__all__ = [
    "User",
    "UserPreference",
    # Ledger
    "Account",
    "Transaction",
    "Security",
    "Holding",
    "InvestmentTransaction",
    # Currencies
    "Currency",
    # Exchange Rates
    "ExchangeRate",
]
