"""
Ledger Repository - the only writer of nama_entries and the query seam for aggregates.

Rows are append-only: there is no update or delete here. Every query is
clamped to entry_date <= today so a stray future-dated row never leaks
into a window.
"""
import logging
from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from namabank.domain.errors import StoreUnavailableError
from namabank.domain.windows import WINDOWS, WindowBounds, WindowTotals
from namabank.infrastructure.db.models import NamaEntry

logger = logging.getLogger(__name__)

GROUP_BY_ACCOUNT = "account"
GROUP_BY_USER = "user"


@contextmanager
def store_errors(operation: str):
    """Re-raise any SQLAlchemy failure as StoreUnavailableError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception("Ledger store failed during %s", operation)
        raise StoreUnavailableError(f"Ledger store unavailable during {operation}") from e


class LedgerRepository:

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append_entries(self, rows: Iterable[Dict[str, Any]]) -> List[NamaEntry]:
        """
        Stage entries in the caller's transaction and flush to get ids.

        The caller commits (or rolls back) so that a batch becomes visible
        to readers all at once.

        Raises:
            StoreUnavailableError: if the flush fails
        """
        entries = [NamaEntry(**row) for row in rows]
        with store_errors("append"):
            self.db.add_all(entries)
            self.db.flush()
        return entries

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def window_sums(
        self,
        bounds: WindowBounds,
        group_by: Optional[str] = None,
        account_id: Optional[int] = None,
        user_id: Optional[int] = None,
        account_ids: Optional[Iterable[int]] = None,
    ) -> Dict[Optional[int], WindowTotals]:
        """
        Sum count into the five windows in a single scan.

        Returns {subject_id: WindowTotals}; ungrouped queries use the key None.
        Subjects without entries are simply absent from the result.
        """
        def windowed(start: Optional[date]):
            # rows are clamped to entry_date <= today, so ">= today" is the today bucket
            if start is None:
                return func.coalesce(func.sum(NamaEntry.count), 0)
            return func.coalesce(
                func.sum(case((NamaEntry.entry_date >= start, NamaEntry.count), else_=0)), 0
            )

        columns = [windowed(bounds.lower_bound(w)) for w in WINDOWS]

        key_column = None
        if group_by == GROUP_BY_ACCOUNT:
            key_column = NamaEntry.account_id
        elif group_by == GROUP_BY_USER:
            key_column = NamaEntry.user_id
        elif group_by is not None:
            raise ValueError(f"Unknown grouping: {group_by}")

        stmt = select(*([key_column] if key_column is not None else []), *columns).where(
            NamaEntry.entry_date <= bounds.today
        )
        if account_id is not None:
            stmt = stmt.where(NamaEntry.account_id == account_id)
        if user_id is not None:
            stmt = stmt.where(NamaEntry.user_id == user_id)
        if account_ids is not None:
            stmt = stmt.where(NamaEntry.account_id.in_(list(account_ids)))
        if key_column is not None:
            stmt = stmt.group_by(key_column)

        with store_errors("window_sums"):
            rows = self.db.execute(stmt).all()

        result: Dict[Optional[int], WindowTotals] = {}
        for row in rows:
            if key_column is not None:
                key, values = row[0], row[1:]
            else:
                key, values = None, row
            result[key] = WindowTotals(**{w: int(v or 0) for w, v in zip(WINDOWS, values)})
        return result

    def totals_by_user(self, until: date) -> Dict[int, int]:
        """Overall total per user (entry_date <= until)."""
        stmt = (
            select(NamaEntry.user_id, func.sum(NamaEntry.count))
            .where(NamaEntry.entry_date <= until)
            .group_by(NamaEntry.user_id)
        )
        with store_errors("totals_by_user"):
            rows = self.db.execute(stmt).all()
        return {uid: int(total or 0) for uid, total in rows}

    def totals_by_account(self, until: date, since: Optional[date] = None) -> Dict[int, int]:
        """Total per account within [since, until]."""
        stmt = select(NamaEntry.account_id, func.sum(NamaEntry.count)).where(
            NamaEntry.entry_date <= until
        )
        if since is not None:
            stmt = stmt.where(NamaEntry.entry_date >= since)
        stmt = stmt.group_by(NamaEntry.account_id)
        with store_errors("totals_by_account"):
            rows = self.db.execute(stmt).all()
        return {aid: int(total or 0) for aid, total in rows}

    def daily_totals(self, start: date, end: date) -> Dict[date, int]:
        """Sum per entry_date for start <= entry_date <= end (missing days absent)."""
        stmt = (
            select(NamaEntry.entry_date, func.sum(NamaEntry.count))
            .where(NamaEntry.entry_date >= start, NamaEntry.entry_date <= end)
            .group_by(NamaEntry.entry_date)
        )
        with store_errors("daily_totals"):
            rows = self.db.execute(stmt).all()
        return {d: int(total or 0) for d, total in rows}

    def totals_by_source_type(self, until: date) -> Dict[str, int]:
        stmt = (
            select(NamaEntry.source_type, func.sum(NamaEntry.count))
            .where(NamaEntry.entry_date <= until)
            .group_by(NamaEntry.source_type)
        )
        with store_errors("totals_by_source_type"):
            rows = self.db.execute(stmt).all()
        return {source: int(total or 0) for source, total in rows}

    def count_entries(self, until: Optional[date] = None) -> int:
        stmt = select(func.count(NamaEntry.id))
        if until is not None:
            stmt = stmt.where(NamaEntry.entry_date <= until)
        with store_errors("count_entries"):
            return self.db.execute(stmt).scalar() or 0

    def recent_entries(
        self,
        limit: int,
        user_id: Optional[int] = None,
    ) -> List[NamaEntry]:
        """Newest first by created_at, id as tie-break for same-instant batches."""
        stmt = select(NamaEntry)
        if user_id is not None:
            stmt = stmt.where(NamaEntry.user_id == user_id)
        stmt = stmt.order_by(NamaEntry.created_at.desc(), NamaEntry.id.desc()).limit(limit)
        with store_errors("recent_entries"):
            return list(self.db.execute(stmt).scalars().all())
