"""
fxsync - Pydantic Schemas
"""
from fxsync.schemas.exchange_rate import (
    RateUpdateResult,
    RateRefreshSummary,
    BackfillPairResult,
    BackfillSummary,
    ExchangeRateResponse,
    CurrencyResponse,
    LatestRateResponse,
    RateStatusResponse,
    BackfillAccepted,
)

__all__ = [
    "RateUpdateResult",
    "RateRefreshSummary",
    "BackfillPairResult",
    "BackfillSummary",
    "ExchangeRateResponse",
    "CurrencyResponse",
    "LatestRateResponse",
    "RateStatusResponse",
    "BackfillAccepted",
]
