"""
Yahoo Finance FX Client

Fetches currency pair quotes from the Yahoo Finance v8 chart API.
No API key required.

FX instruments use the "{FROM}{TO}=X" symbol convention:
GET https://query1.finance.yahoo.com/v8/finance/chart/EURUSD=X?interval=1d&range=1d
Response (abridged):
    {"chart": {"result": [{"meta": {"regularMarketPrice": 1.0485,
                                    "exchangeTimezoneName": "Europe/London"},
                           "timestamp": [1740960000, ...],
                           "indicators": {"quote": [{"close": [1.0485, ...]}]}}]}}

Every failure (HTTP status, network, malformed payload) is logged and
returned as None so callers can record a clean per-pair miss.
"""
import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
from loguru import logger

from fxsync.config import settings
from fxsync.utils.exceptions import DataProviderError


PROVIDER_NAME = "yahoo_finance"


@dataclass(frozen=True)
class HistoricalRate:
    """One daily close of a currency pair."""
    date: date
    close: Decimal


def pair_symbol(from_currency: str, to_currency: str) -> str:
    """Yahoo symbol for a currency pair, e.g. ('EUR', 'USD') -> 'EURUSD=X'."""
    return f"{from_currency.upper()}{to_currency.upper()}=X"


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Convert a JSON number to a positive Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite() or result <= 0:
        return None
    return result


def _first_result(payload: Any, symbol: str) -> dict:
    try:
        result = payload["chart"]["result"][0]
    except (KeyError, IndexError, TypeError):
        raise DataProviderError(PROVIDER_NAME, f"No chart result for {symbol}")
    if not isinstance(result, dict):
        raise DataProviderError(PROVIDER_NAME, f"Malformed chart result for {symbol}")
    return result


def parse_spot(payload: Any, symbol: str) -> Decimal:
    """Extract the current market price from a chart payload."""
    result = _first_result(payload, symbol)
    price = _to_decimal((result.get("meta") or {}).get("regularMarketPrice"))
    if price is None:
        raise DataProviderError(PROVIDER_NAME, f"No market price for {symbol}")
    return price


def parse_series(payload: Any, symbol: str) -> list[HistoricalRate]:
    """
    Extract daily closes from a chart payload, in provider order.

    Points with a missing or NaN close are dropped. Timestamps are mapped
    to calendar dates in the instrument's exchange timezone (UTC if the
    payload does not say).
    """
    result = _first_result(payload, symbol)
    timestamps = result.get("timestamp")
    try:
        closes = result["indicators"]["quote"][0]["close"]
    except (KeyError, IndexError, TypeError):
        closes = None
    if not timestamps or closes is None:
        raise DataProviderError(PROVIDER_NAME, f"No historical series for {symbol}")

    tz: Any = timezone.utc
    tz_name = (result.get("meta") or {}).get("exchangeTimezoneName")
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug(f"Unknown exchange timezone '{tz_name}' for {symbol}, using UTC")

    series = []
    for ts, close in zip(timestamps, closes):
        value = _to_decimal(close)
        if value is None or ts is None:
            continue
        series.append(
            HistoricalRate(
                date=datetime.fromtimestamp(ts, tz=tz).date(),
                close=value,
            )
        )
    return series


class YahooFinanceClient:
    """
    Quote provider for currency pairs.

    Usage:
        client = YahooFinanceClient()
        rate = await client.fetch_spot(pair_symbol("EUR", "USD"))
        series = await client.fetch_historical_series(pair_symbol("EUR", "USD"))
    """

    name = PROVIDER_NAME

    def __init__(
        self,
        base_url: str = settings.YAHOO_CHART_URL,
        spot_timeout: float = settings.SPOT_TIMEOUT_SECONDS,
        historical_timeout: float = settings.HISTORICAL_TIMEOUT_SECONDS,
        user_agent: str = settings.YAHOO_USER_AGENT,
    ):
        """
        Args:
            base_url: Chart API endpoint
            spot_timeout: HTTP timeout for spot quotes in seconds
            historical_timeout: HTTP timeout for full history in seconds
            user_agent: User-Agent header (Yahoo rejects empty agents)
        """
        self.base_url = base_url.rstrip("/")
        self.spot_timeout = spot_timeout
        self.historical_timeout = historical_timeout
        self.headers = {"User-Agent": user_agent}

    async def _get_chart(self, symbol: str, range_: str, timeout: float) -> Optional[Any]:
        url = f"{self.base_url}/{quote(symbol)}"
        params = {"interval": "1d", "range": range_}

        try:
            async with httpx.AsyncClient(timeout=timeout, headers=self.headers) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()

        except httpx.HTTPStatusError as e:
            logger.warning(f"Yahoo Finance API returned {e.response.status_code} for {symbol}")
            return None
        except httpx.RequestError as e:
            logger.error(f"Request error fetching {symbol} from Yahoo Finance: {e}")
            return None
        except ValueError as e:
            logger.error(f"Invalid JSON from Yahoo Finance for {symbol}: {e}")
            return None

    async def fetch_spot(self, symbol: str) -> Optional[Decimal]:
        """
        Fetch the current rate for a pair symbol.

        Returns:
            Positive Decimal rate, or None if unavailable
        """
        payload = await self._get_chart(symbol, "1d", self.spot_timeout)
        if payload is None:
            return None

        try:
            rate = parse_spot(payload, symbol)
        except DataProviderError as e:
            logger.warning(e.message)
            return None

        logger.debug(f"Fetched spot {symbol} = {rate}")
        return rate

    async def fetch_historical_series(self, symbol: str) -> Optional[list[HistoricalRate]]:
        """
        Fetch the full daily close history for a pair symbol.

        Returns:
            List of HistoricalRate in provider order (may be empty), or
            None if the provider had nothing usable
        """
        payload = await self._get_chart(symbol, "max", self.historical_timeout)
        if payload is None:
            return None

        try:
            series = parse_series(payload, symbol)
        except DataProviderError as e:
            logger.warning(e.message)
            return None

        logger.debug(f"Fetched {len(series)} historical closes for {symbol}")
        return series
