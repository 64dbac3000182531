"""
Report assembler - time series and categorical breakdowns for the public,
admin and moderator dashboards.

Every operation is a pure read of the current ledger/user snapshot; nothing
is cached between calls. Composite dashboards are best-effort per section:
a section whose store call fails comes back as None and is named in
"failed_sections", so a failure is never shown as zero contributions.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from namabank.config import get_settings
from namabank.domain.entry import KNOWN_SOURCE_TYPES
from namabank.domain.errors import StoreUnavailableError
from namabank.domain.windows import TRAILING_WEEK_DAYS
from namabank.infrastructure.db.models import User
from namabank.infrastructure.ledger.repository import LedgerRepository, store_errors
from namabank.application.accounts import list_accounts
from namabank.application.aggregation import AggregationService
from namabank.application.ranking import LeaderboardService
from namabank.application.users import list_users
from namabank.readmodels.ledger_feed import get_recent_entries, get_recent_users
from namabank.utils.clock import Clock, to_local_date

logger = logging.getLogger(__name__)

ADMIN_RECENT_ENTRIES_LIMIT = 100


def _day_label(d: date) -> str:
    """'Mon 15' style label used on the charts"""
    return f"{d:%a} {d.day}"


class ReportService:
    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock
        self.ledger = LedgerRepository(db)
        self.aggregation = AggregationService(db, clock)
        self.leaderboard = LeaderboardService(db, clock)
        self.settings = get_settings()

    # ------------------------------------------------------------------
    # Time series
    # ------------------------------------------------------------------

    def _trailing_days(self, days: int) -> list[date]:
        if days < 1:
            raise ValueError("days must be at least 1")
        today = self.clock.today()
        return [today - timedelta(days=i) for i in range(days - 1, -1, -1)]

    def daily_series(self, days: int = 7) -> list[dict]:
        """
        Exactly `days` buckets ending today, oldest first:
        [{date, label, count}, ...]; empty days report 0.
        """
        buckets = self._trailing_days(days)
        totals = self.ledger.daily_totals(buckets[0], buckets[-1])
        return [
            {"date": d, "label": _day_label(d), "count": totals.get(d, 0)}
            for d in buckets
        ]

    def weekly_series(self, weeks: int = 4) -> list[dict]:
        """
        `weeks` non-overlapping trailing 7-day buckets, oldest first.
        The newest bucket is today-6 ... today, both ends inclusive.
        """
        if weeks < 1:
            raise ValueError("weeks must be at least 1")
        today = self.clock.today()
        spans = []
        for i in range(weeks - 1, -1, -1):
            end = today - timedelta(days=i * TRAILING_WEEK_DAYS)
            spans.append((end - timedelta(days=TRAILING_WEEK_DAYS - 1), end))

        daily = self.ledger.daily_totals(spans[0][0], today)
        return [
            {
                "week": f"Week {n}",
                "start": start,
                "end": end,
                "count": sum(c for d, c in daily.items() if start <= d <= end),
            }
            for n, (start, end) in enumerate(spans, start=1)
        ]

    def new_subjects_per_day(self, days: int = 7) -> list[dict]:
        """Registrations per local calendar day, same buckets as daily_series."""
        buckets = self._trailing_days(days)
        # one spare day covers any timezone offset; to_local_date does the exact bucketing
        since = datetime.combine(buckets[0] - timedelta(days=1), time.min, tzinfo=timezone.utc)
        with store_errors("new users"):
            created = self.db.execute(
                select(User.created_at).where(User.created_at >= since)
            ).scalars().all()

        per_day: dict[date, int] = {}
        for ts in created:
            d = to_local_date(ts, self.clock.tz)
            per_day[d] = per_day.get(d, 0) + 1
        return [
            {"date": d, "label": _day_label(d), "count": per_day.get(d, 0)}
            for d in buckets
        ]

    # ------------------------------------------------------------------
    # Breakdowns
    # ------------------------------------------------------------------

    def source_type_ratio(self) -> list[dict]:
        """
        Split of the overall total by source type. manual and audio are
        always present; other source types follow in name order.
        """
        totals = self.ledger.totals_by_source_type(self.clock.today())
        extra = sorted(t for t in totals if t not in KNOWN_SOURCE_TYPES)
        return [
            {"source_type": t, "name": t.replace("_", " ").title(), "value": totals.get(t, 0)}
            for t in (*KNOWN_SOURCE_TYPES, *extra)
        ]

    def city_breakdown(self, top_n: int | None = None) -> list[dict]:
        """
        Overall totals grouped by user city (users without a city are skipped),
        largest first, ties by city name.
        """
        top_n = self.settings.CITY_BREAKDOWN_LIMIT if top_n is None else top_n
        user_totals = self.ledger.totals_by_user(self.clock.today())
        with store_errors("user cities"):
            users = self.db.execute(select(User.id, User.city)).all()

        cities: dict[str, int] = {}
        for uid, city in users:
            city = (city or "").strip()
            if not city:
                continue
            cities[city] = cities.get(city, 0) + user_totals.get(uid, 0)

        ordered = sorted(cities.items(), key=lambda kv: (-kv[1], kv[0]))
        return [{"city": c, "count": n} for c, n in ordered[:max(top_n, 0)]]

    def total_stats(self) -> dict:
        today = self.clock.today()
        with store_errors("user count"):
            users = self.db.execute(select(func.count(User.id))).scalar() or 0
        return {
            "users": users,
            "entries": self.ledger.count_entries(until=today),
            "total": self.aggregation.aggregate_for_ledger().overall,
        }

    def account_progress(self) -> list[dict]:
        """Progress of active accounts that have a target goal."""
        result = []
        for row in self.aggregation.aggregate_for_all_active_accounts():
            goal = row["target_goal"]
            if not goal:
                continue
            result.append({
                "account_id": row["account_id"],
                "name": row["name"],
                "target_goal": goal,
                "overall": row["overall"],
                "percent": round(row["overall"] * 100 / goal, 1),
                "remaining": max(goal - row["overall"], 0),
            })
        return result

    # ------------------------------------------------------------------
    # Composite dashboards
    # ------------------------------------------------------------------

    def _best_effort(self, sections: dict[str, Callable[[], Any]]) -> dict:
        result: dict[str, Any] = {}
        failed: list[str] = []
        for name, build in sections.items():
            try:
                result[name] = build()
            except StoreUnavailableError:
                logger.warning("Dashboard section %s failed", name)
                self.db.rollback()
                result[name] = None
                failed.append(name)
        result["failed_sections"] = failed
        return result

    def public_dashboard(self) -> dict:
        today = self.clock.today()
        return self._best_effort({
            "account_stats": self.aggregation.aggregate_for_all_active_accounts,
            "account_progress": self.account_progress,
            "top_contributors": lambda: [r.as_dict() for r in self.leaderboard.top_contributors()],
            "top_growing": lambda: [r.as_dict() for r in self.leaderboard.top_growing_accounts()],
            "daily": self.daily_series,
            "weekly": self.weekly_series,
            "source_ratio": self.source_type_ratio,
            "cities": self.city_breakdown,
            "new_devotees": self.new_subjects_per_day,
            "totals": self.total_stats,
            "recent_entries": lambda: get_recent_entries(self.db, self.settings.RECENT_ENTRIES_LIMIT),
            "recent_users": lambda: get_recent_users(self.db, today, self.settings.RECENT_USERS_LIMIT),
        })

    def admin_dashboard(self) -> dict:
        return self._best_effort({
            "accounts": lambda: [
                {
                    "account_id": a.id,
                    "name": a.name,
                    "status": a.status,
                    "start_date": a.start_date,
                    "end_date": a.end_date,
                    "target_goal": a.target_goal,
                }
                for a in list_accounts(self.db, active_only=False)
            ],
            "users": lambda: [
                {
                    "user_id": u.id,
                    "name": u.name,
                    "city": u.city,
                    "is_active": u.is_active,
                    "created_at": u.created_at,
                }
                for u in list_users(self.db)
            ],
            "account_stats": self.aggregation.aggregate_for_all_active_accounts,
            "recent_entries": lambda: get_recent_entries(self.db, ADMIN_RECENT_ENTRIES_LIMIT),
        })
