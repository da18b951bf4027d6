"""
fxsync - Account Models

Accounts and their cash transactions. Read-only for the rate engines:
open accounts decide which currencies are in use, and the earliest
transaction date decides how far back rates are needed.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship

from fxsync.db.database import Base


class Account(Base):
    """Financial account denominated in a single currency."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    currency_code = Column(String(3), nullable=False)
    is_closed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="accounts")
    transactions = relationship("Transaction", back_populates="account")
    holdings = relationship("Holding", back_populates="account")

    def __repr__(self):
        return f"<Account {self.name} ({self.currency_code})>"


class Transaction(Base):
    """Regular (cash) transaction on an account."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_date = Column(Date, nullable=False)
    amount = Column(Numeric(15, 2), default=Decimal("0"))

    account = relationship("Account", back_populates="transactions")

    def __repr__(self):
        return f"<Transaction {self.transaction_date} {self.amount}>"
