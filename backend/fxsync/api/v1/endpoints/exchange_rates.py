"""
fxsync - Currency and Exchange Rate Endpoints

Read access to stored rates plus manual triggers for the refresh and
backfill jobs. Refresh runs inline and returns its summary; backfill is
queued and returns immediately.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from fxsync.db.repositories.currency import CurrencyRepository
from fxsync.db.repositories.exchange_rate import ExchangeRateRepository
from fxsync.dependencies import (
    get_currency_repository,
    get_exchange_rate_repository,
    get_queue,
    get_refresh_service,
)
from fxsync.schemas.exchange_rate import (
    BackfillAccepted,
    CurrencyResponse,
    ExchangeRateResponse,
    LatestRateResponse,
    RateRefreshSummary,
    RateStatusResponse,
)
from fxsync.services.backfill_queue import BackfillQueue
from fxsync.services.rate_refresh import RateRefreshService
from fxsync.utils.exceptions import raise_bad_request


router = APIRouter()


# ============================================
# Currencies
# ============================================

@router.get("/", response_model=List[CurrencyResponse])
async def list_currencies(
    repo: CurrencyRepository = Depends(get_currency_repository)
):
    """List active currencies, ordered by code."""
    return await repo.get_active_currencies()


# ============================================
# Exchange Rates
# ============================================

@router.get("/exchange-rates", response_model=List[ExchangeRateResponse])
async def get_latest_exchange_rates(
    repo: ExchangeRateRepository = Depends(get_exchange_rate_repository)
):
    """Most recent stored rate for every pair."""
    return await repo.get_latest_rates()


@router.get("/exchange-rates/history", response_model=List[ExchangeRateResponse])
async def get_exchange_rate_history(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    repo: ExchangeRateRepository = Depends(get_exchange_rate_repository)
):
    """Stored rates between two dates (inclusive)."""
    if start_date and end_date and start_date > end_date:
        raise_bad_request("start_date must not be after end_date")
    return await repo.get_rate_history(start_date=start_date, end_date=end_date)


@router.get("/exchange-rates/status", response_model=RateStatusResponse)
async def get_exchange_rate_status(
    repo: ExchangeRateRepository = Depends(get_exchange_rate_repository)
):
    """When rates were last written."""
    return RateStatusResponse(last_updated=await repo.get_last_update_time())


@router.get("/exchange-rates/latest", response_model=LatestRateResponse)
async def get_latest_rate(
    from_currency: str = Query(..., min_length=3, max_length=3),
    to_currency: str = Query(..., min_length=3, max_length=3),
    repo: ExchangeRateRepository = Depends(get_exchange_rate_repository)
):
    """Latest rate for one pair, in either direction."""
    base = from_currency.upper()
    quote = to_currency.upper()
    rate = await repo.get_latest_rate(base, quote)
    return LatestRateResponse(from_currency=base, to_currency=quote, rate=rate)


# ============================================
# Manual triggers
# ============================================

@router.post("/exchange-rates/refresh", response_model=RateRefreshSummary)
async def refresh_exchange_rates(
    service: RateRefreshService = Depends(get_refresh_service)
):
    """Refresh spot rates for all currencies in use now."""
    return await service.refresh_all_rates()


@router.post("/exchange-rates/backfill", response_model=BackfillAccepted, status_code=202)
async def backfill_exchange_rates(
    user_id: int = Query(..., gt=0),
    account_ids: Optional[List[int]] = Query(None),
    queue: BackfillQueue = Depends(get_queue)
):
    """Queue a historical backfill for a user."""
    queued = await queue.enqueue(user_id, account_ids)
    return BackfillAccepted(user_id=user_id, queued=queued)
