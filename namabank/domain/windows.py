"""
Aggregate windows - the five named trailing ranges every total is reported in.

Boundaries (all inclusive, compared on entry_date, never created_at):
  - today      : entry_date == today
  - this_week  : today-6 ... today (trailing 7 days, not Monday-based)
  - this_month : 1st of the current calendar month ... today
  - this_year  : 1st January of the current year ... today
  - overall    : everything up to today

Entries dated after "today" fall outside every window.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date, timedelta

WINDOW_TODAY = "today"
WINDOW_THIS_WEEK = "this_week"
WINDOW_THIS_MONTH = "this_month"
WINDOW_THIS_YEAR = "this_year"
WINDOW_OVERALL = "overall"

WINDOWS = (WINDOW_TODAY, WINDOW_THIS_WEEK, WINDOW_THIS_MONTH, WINDOW_THIS_YEAR, WINDOW_OVERALL)

TRAILING_WEEK_DAYS = 7


@dataclass(frozen=True)
class WindowBounds:
    today: date
    week_start: date
    month_start: date
    year_start: date

    @classmethod
    def for_day(cls, today: date) -> WindowBounds:
        return cls(
            today=today,
            week_start=today - timedelta(days=TRAILING_WEEK_DAYS - 1),
            month_start=today.replace(day=1),
            year_start=today.replace(month=1, day=1),
        )

    def lower_bound(self, window: str) -> date | None:
        """First date of the window; None means unbounded (overall)."""
        if window == WINDOW_TODAY:
            return self.today
        if window == WINDOW_THIS_WEEK:
            return self.week_start
        if window == WINDOW_THIS_MONTH:
            return self.month_start
        if window == WINDOW_THIS_YEAR:
            return self.year_start
        if window == WINDOW_OVERALL:
            return None
        raise ValueError(f"Unknown window: {window}")


@dataclass
class WindowTotals:
    """Per-subject sums; an empty subject is all zeros, never None."""
    today: int = 0
    this_week: int = 0
    this_month: int = 0
    this_year: int = 0
    overall: int = 0

    def as_dict(self) -> dict:
        return asdict(self)
