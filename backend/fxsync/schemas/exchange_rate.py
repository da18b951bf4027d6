"""
fxsync - Exchange Rate Schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


# ============================================
# Refresh
# ============================================

class RateUpdateResult(BaseModel):
    """Outcome of refreshing one currency pair."""
    pair: str = Field(..., description="Pair label, e.g. 'EUR/USD'")
    success: bool
    rate: Optional[Decimal] = None
    error: Optional[str] = None


class RateRefreshSummary(BaseModel):
    """Outcome of a full spot-rate refresh."""
    total_pairs: int = 0
    updated: int = 0
    failed: int = 0
    results: list[RateUpdateResult] = []
    last_updated: datetime


# ============================================
# Backfill
# ============================================

class BackfillPairResult(BaseModel):
    """Outcome of backfilling one currency pair."""
    pair: str
    success: bool
    rates_loaded: Optional[int] = None
    error: Optional[str] = None


class BackfillSummary(BaseModel):
    """Outcome of a historical backfill for one user."""
    total_pairs: int = 0
    successful: int = 0
    failed: int = 0
    total_rates_loaded: int = 0
    results: list[BackfillPairResult] = []


# ============================================
# Read models
# ============================================

class ExchangeRateResponse(BaseModel):
    """Stored exchange rate."""
    from_currency: str
    to_currency: str
    rate: Decimal
    rate_date: date
    source: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CurrencyResponse(BaseModel):
    """Currency reference entry."""
    code: str
    name: str
    symbol: str
    decimal_places: int
    is_active: bool

    model_config = {"from_attributes": True}


class LatestRateResponse(BaseModel):
    from_currency: str
    to_currency: str
    rate: Optional[Decimal] = None


class RateStatusResponse(BaseModel):
    last_updated: Optional[datetime] = None


class BackfillAccepted(BaseModel):
    user_id: int
    queued: bool
