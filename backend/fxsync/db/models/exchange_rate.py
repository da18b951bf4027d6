"""
fxsync - Exchange Rate Model

One row per (from_currency, to_currency, rate_date). Each pair is stored
in a single canonical direction only; the inverse is derived on read.

Example data:
- EUR/USD 2025-03-03: 1.0485 (1 EUR = 1.0485 USD)
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, UniqueConstraint, CheckConstraint, Index

from fxsync.db.database import Base


class ExchangeRate(Base):
    """Daily foreign exchange rate.

    Attributes:
        from_currency: The currency being converted from (e.g., 'EUR')
        to_currency: The currency being converted to (e.g., 'USD')
        rate: The exchange rate (1 from = rate to)
        rate_date: Calendar date the rate applies to
        source: Data source identifier ('yahoo_finance', 'seed', etc.)
        created_at: When the row was first inserted
        updated_at: When the row was last written
    """

    __tablename__ = "exchange_rates"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Currency pair
    from_currency = Column(String(3), nullable=False)
    to_currency = Column(String(3), nullable=False)

    # Rate value (1 from = rate to)
    rate = Column(Numeric(20, 10), nullable=False)
    rate_date = Column(Date, nullable=False)

    # Source metadata
    source = Column(String(50), nullable=False, default="yahoo_finance")

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    # Constraints
    __table_args__ = (
        UniqueConstraint('from_currency', 'to_currency', 'rate_date', name='uq_exchange_rates_pair_date'),
        CheckConstraint('rate > 0', name='ck_exchange_rates_rate_positive'),
        Index('ix_exchange_rates_rate_date', 'rate_date'),
    )

    def __repr__(self):
        return f"<ExchangeRate {self.from_currency}/{self.to_currency} {self.rate_date}={self.rate}>"

    @property
    def pair(self) -> str:
        """Return the currency pair as a string (e.g., 'EUR/USD')."""
        return f"{self.from_currency}/{self.to_currency}"

    @property
    def inverse_rate(self) -> Decimal:
        """Return the inverse rate (e.g., if EUR/USD=1.05, USD/EUR=0.952...)."""
        return Decimal("1") / Decimal(self.rate)
