"""
fxsync - Currency Model

Reference list of currencies. Edited through the currency management
screens; the rate engines only read it.
"""
from datetime import datetime
from sqlalchemy import Column, String, SmallInteger, Boolean, DateTime, CheckConstraint

from fxsync.db.database import Base


class Currency(Base):
    """ISO 4217 currency."""

    __tablename__ = "currencies"

    code = Column(String(3), primary_key=True)
    name = Column(String(100), nullable=False)
    symbol = Column(String(10), nullable=False)
    decimal_places = Column(SmallInteger, nullable=False, default=2)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint('decimal_places BETWEEN 0 AND 4', name='ck_currencies_decimal_places'),
    )

    def __repr__(self):
        return f"<Currency {self.code}>"
