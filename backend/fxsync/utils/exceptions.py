"""
fxsync - Custom Exceptions
Application-specific exceptions with HTTP error handling
"""
from typing import Optional, Any, Dict
from fastapi import HTTPException, status


class FxSyncException(Exception):
    """Base exception for fxsync."""

    def __init__(
        self,
        message: str = "An error occurred",
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


# =========================
# Currency Usage Exceptions
# =========================

class CurrencyResolutionError(FxSyncException):
    """Used currencies or backfill cutoffs could not be determined."""

    def __init__(self, message: str = "Could not resolve currencies in use", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="RESOLVER_FAILED", details=details)


# =========================
# Rate Store Exceptions
# =========================

class RateStoreError(FxSyncException):
    """Exchange rate persistence failed."""

    def __init__(self, message: str = "Exchange rate store error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="RATE_STORE_ERROR", details=details)


# =========================
# Market Data Exceptions
# =========================

class DataProviderError(FxSyncException):
    """Data provider error."""

    def __init__(self, provider: str = "", message: str = "Provider error"):
        super().__init__(
            message=f"{provider}: {message}" if provider else message,
            code="PROVIDER_ERROR"
        )


# =========================
# HTTP Exception Helpers
# =========================

def raise_bad_request(message: str = "Bad request"):
    """Raise 400 Bad Request exception."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=message
    )
