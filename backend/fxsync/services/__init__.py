"""
fxsync - Services Package
"""
from fxsync.services.currency_usage import CurrencyUsageResolver
from fxsync.services.rate_refresh import RateRefreshService, build_currency_pairs, get_rate_refresh_service
from fxsync.services.historical_backfill import (
    HistoricalBackfillService,
    select_backfill_points,
    get_backfill_service,
)
from fxsync.services.backfill_queue import BackfillQueue, BackfillRequest, get_backfill_queue

__all__ = [
    "CurrencyUsageResolver",
    "RateRefreshService",
    "build_currency_pairs",
    "get_rate_refresh_service",
    "HistoricalBackfillService",
    "select_backfill_points",
    "get_backfill_service",
    "BackfillQueue",
    "BackfillRequest",
    "get_backfill_queue",
]
