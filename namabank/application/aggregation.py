"""
Aggregation engine - rolling window totals per account, per user and for all active accounts.

Totals are computed on read from the ledger on every call, so a caller
always observes its own committed submissions. Disabling an account hides
it from aggregate_for_all_active_accounts() only; querying it by id still
returns its full history.
"""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from namabank.domain.windows import WindowBounds, WindowTotals
from namabank.domain.errors import NotFoundError
from namabank.infrastructure.db.models import NamaAccount, User
from namabank.infrastructure.ledger.repository import (
    LedgerRepository, GROUP_BY_ACCOUNT, GROUP_BY_USER, store_errors,
)
from namabank.utils.clock import Clock


class AggregationService:
    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock
        self.ledger = LedgerRepository(db)

    def bounds(self) -> WindowBounds:
        return WindowBounds.for_day(self.clock.today())

    def get_account(self, account_id: int) -> NamaAccount:
        """Account by id, active or not."""
        with store_errors("account lookup"):
            account = self.db.get(NamaAccount, account_id)
        if account is None:
            raise NotFoundError(f"Nama Bank #{account_id} not found")
        return account

    def get_user(self, user_id: int) -> User:
        with store_errors("user lookup"):
            user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError(f"User #{user_id} not found")
        return user

    def aggregate_for_account(self, account_id: int) -> WindowTotals:
        """Five window totals for one account (disabled accounts included)."""
        sums = self.ledger.window_sums(self.bounds(), account_id=account_id)
        return sums.get(None) or WindowTotals()

    def aggregate_for_user(self, user_id: int) -> WindowTotals:
        """Five window totals for one user across all accounts."""
        sums = self.ledger.window_sums(self.bounds(), user_id=user_id)
        return sums.get(None) or WindowTotals()

    def aggregate_for_all_active_accounts(self) -> list[dict]:
        """
        One row per active account, in account name order:
        [{account_id, name, target_goal, today, this_week, this_month, this_year, overall}, ...]
        """
        with store_errors("active accounts"):
            accounts = self.db.execute(
                select(NamaAccount)
                .where(NamaAccount.is_active.is_(True))
                .order_by(NamaAccount.name, NamaAccount.id)
            ).scalars().all()
        if not accounts:
            return []

        sums = self.ledger.window_sums(
            self.bounds(),
            group_by=GROUP_BY_ACCOUNT,
            account_ids=[a.id for a in accounts],
        )
        return [
            {
                "account_id": a.id,
                "name": a.name,
                "target_goal": a.target_goal,
                **(sums.get(a.id) or WindowTotals()).as_dict(),
            }
            for a in accounts
        ]

    def aggregate_by_user(self) -> dict[int, WindowTotals]:
        """Window totals keyed by user id (users without entries are absent)."""
        return self.ledger.window_sums(self.bounds(), group_by=GROUP_BY_USER)

    def aggregate_for_ledger(self) -> WindowTotals:
        """Window totals over every entry, whatever account or user."""
        sums = self.ledger.window_sums(self.bounds())
        return sums.get(None) or WindowTotals()
