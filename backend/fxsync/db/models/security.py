"""
fxsync - Security Models

Securities, the holdings of them inside accounts, and investment
transactions. A security can be quoted in a currency different from
the account that holds it.
"""
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Boolean, Date, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from fxsync.db.database import Base


class Security(Base):
    """Tradable instrument owned by a user's investment records."""

    __tablename__ = "securities"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    symbol = Column(String(20), nullable=False)
    currency_code = Column(String(3), nullable=False)  # Currency the security is quoted in
    is_active = Column(Boolean, nullable=False, default=True)

    holdings = relationship("Holding", back_populates="security")

    def __repr__(self):
        return f"<Security {self.symbol} ({self.currency_code})>"


class Holding(Base):
    """Quantity of a security held in an account."""

    __tablename__ = "holdings"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    security_id = Column(Integer, ForeignKey("securities.id", ondelete="CASCADE"), nullable=False, index=True)
    quantity = Column(Numeric(20, 8), nullable=False, default=Decimal("0"))

    account = relationship("Account", back_populates="holdings")
    security = relationship("Security", back_populates="holdings")

    __table_args__ = (
        UniqueConstraint('account_id', 'security_id', name='uq_holdings_account_security'),
    )

    def __repr__(self):
        return f"<Holding account={self.account_id} security={self.security_id} qty={self.quantity}>"


class InvestmentTransaction(Base):
    """Buy/sell/dividend record for a security within an account."""

    __tablename__ = "investment_transactions"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    security_id = Column(Integer, ForeignKey("securities.id", ondelete="SET NULL"), nullable=True, index=True)
    transaction_date = Column(Date, nullable=False)
    quantity = Column(Numeric(20, 8), nullable=True)

    def __repr__(self):
        return f"<InvestmentTransaction {self.transaction_date} security={self.security_id}>"
