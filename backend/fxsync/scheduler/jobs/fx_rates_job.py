"""
FX Rates Job

Scheduled spot refresh. Errors are logged and swallowed here so the
cron trigger keeps firing on the next business day.
"""
from typing import Optional
from loguru import logger

from fxsync.schemas.exchange_rate import RateRefreshSummary
from fxsync.services.rate_refresh import get_rate_refresh_service


async def scheduled_rate_refresh() -> Optional[RateRefreshSummary]:
    """Run one scheduled refresh of all exchange rates."""
    logger.info("Scheduled exchange rate refresh starting")
    try:
        summary = await get_rate_refresh_service().refresh_all_rates()
    except Exception as e:
        logger.error(f"Scheduled exchange rate refresh failed: {e}")
        return None

    if summary.failed:
        failed_pairs = ", ".join(r.pair for r in summary.results if not r.success)
        logger.warning(f"Scheduled refresh could not update: {failed_pairs}")
    return summary
