"""
Time source for the rate engines.

Rates are dated in the timezone of the market they track, so "today"
is resolved there rather than in the host's local time.
"""
from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from fxsync.config import settings


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        ...

    def today(self) -> date:
        ...


class SystemClock:
    """Wall-clock time in a fixed timezone."""

    def __init__(self, timezone: str = settings.TIMEZONE):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


system_clock = SystemClock()
