"""
Clock abstraction: "today" is always asked of an injected clock so that
window edges (midnight rollover, month/year starts) can be pinned in tests.

Usage:
    clock = SystemClock("Asia/Kolkata")
    clock.today()  -> date in the configured timezone

    FixedClock(date(2026, 1, 15)).today() -> date(2026, 1, 15)
"""
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo


class Clock:
    """Base clock; subclasses provide now()"""

    tz: ZoneInfo | timezone = timezone.utc

    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def __init__(self, tz_name: str):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock(Clock):
    """Clock pinned to one calendar day (noon local time)"""

    def __init__(self, day: date, tz_name: str = "UTC"):
        self.tz = ZoneInfo(tz_name)
        self._now = datetime.combine(day, time(12, 0), tzinfo=self.tz)

    def now(self) -> datetime:
        return self._now


def to_local_date(ts: datetime | None, tz) -> date | None:
    """Convert a datetime (tz-naive assumed UTC) to a calendar date in tz."""
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz).date()
