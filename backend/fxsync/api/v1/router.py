"""
fxsync - API v1 Router
"""
from fastapi import APIRouter

from fxsync.api.v1.endpoints import exchange_rates

api_router = APIRouter()


# API v1 root endpoint
@api_router.get("/", tags=["API Info"])
async def api_root():
    """API v1 root - returns version info."""
    return {
        "api": "fxsync",
        "version": "v1",
        "status": "operational"
    }


api_router.include_router(exchange_rates.router, prefix="/currencies", tags=["Currencies"])
