"""
Leaderboard / ranking builder.

Ordering contract: total descending, then subject_id ascending, so equal
totals always come out in the same order regardless of how the store
enumerated them. Zero totals never appear; ranks are 1-based positions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from namabank.config import get_settings
from namabank.domain.windows import WINDOW_THIS_WEEK, WINDOWS
from namabank.infrastructure.db.models import User
from namabank.infrastructure.ledger.repository import store_errors
from namabank.application.aggregation import AggregationService
from namabank.utils.clock import Clock


@dataclass(frozen=True)
class SubjectTotal:
    subject_id: int
    name: str
    total: int
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RankingEntry:
    rank: int
    subject_id: int
    name: str
    total: int
    details: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "rank": self.rank,
            "subject_id": self.subject_id,
            "name": self.name,
            "total": self.total,
            **self.details,
        }


def _rank(totals: Iterable[SubjectTotal], limit: int) -> list[RankingEntry]:
    if limit <= 0:
        return []
    ordered = sorted(
        (t for t in totals if t.total > 0),
        key=lambda t: (-t.total, t.subject_id),
    )
    return [
        RankingEntry(rank=i, subject_id=t.subject_id, name=t.name, total=t.total, details=t.details)
        for i, t in enumerate(ordered[:limit], start=1)
    ]


def rank_contributors(user_totals: Iterable[SubjectTotal], limit: int = 10) -> list[RankingEntry]:
    """Top contributors by overall total."""
    return _rank(user_totals, limit)


def rank_growth(account_totals_over_window: Iterable[SubjectTotal], limit: int = 5) -> list[RankingEntry]:
    """Fastest growing accounts by a window-scoped total."""
    return _rank(account_totals_over_window, limit)


class LeaderboardService:
    """Feeds the ranking functions from the aggregation engine."""

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.aggregation = AggregationService(db, clock)
        self.settings = get_settings()

    def top_contributors(self, limit: int | None = None) -> list[RankingEntry]:
        limit = self.settings.LEADERBOARD_LIMIT if limit is None else limit
        by_user = self.aggregation.aggregate_by_user()
        if not by_user:
            return []
        with store_errors("leaderboard users"):
            users = self.db.execute(
                select(User.id, User.name, User.city).where(User.id.in_(list(by_user)))
            ).all()
        return rank_contributors(
            (
                SubjectTotal(
                    subject_id=uid,
                    name=name,
                    total=by_user[uid].overall,
                    details={"city": city},
                )
                for uid, name, city in users
            ),
            limit=limit,
        )

    def top_growing_accounts(
        self, window: str = WINDOW_THIS_WEEK, limit: int | None = None
    ) -> list[RankingEntry]:
        """Active accounts ranked by their total inside `window`."""
        if window not in WINDOWS:
            raise ValueError(f"Unknown window: {window}")
        limit = self.settings.TOP_GROWING_LIMIT if limit is None else limit
        rows = self.aggregation.aggregate_for_all_active_accounts()
        return rank_growth(
            (
                SubjectTotal(subject_id=r["account_id"], name=r["name"], total=r[window])
                for r in rows
            ),
            limit=limit,
        )
