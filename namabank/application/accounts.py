"""
Nama Bank account use cases - create, edit and soft-disable accounts.

Accounts are never deleted: entries keep referencing them, and disabling
only removes them from active listings and from new submissions.
"""
import logging
from datetime import date
from typing import Any, Dict

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from namabank.domain.account import (
    normalize_account_name, validate_account_period, validate_target_goal,
)
from namabank.domain.errors import NamaValidationError, NotFoundError
from namabank.infrastructure.db.models import NamaAccount
from namabank.infrastructure.ledger.repository import store_errors
from namabank.utils.clock import Clock

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("name", "description", "start_date", "end_date", "target_goal")


def _get_account(db: Session, account_id: int) -> NamaAccount:
    account = db.get(NamaAccount, account_id)
    if account is None:
        raise NotFoundError(f"Nama Bank #{account_id} not found")
    return account


def _ensure_unique_name(db: Session, name: str, exclude_id: int | None = None) -> None:
    stmt = select(NamaAccount.id).where(func.lower(NamaAccount.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(NamaAccount.id != exclude_id)
    if db.execute(stmt).first():
        raise NamaValidationError(f"A Nama Bank named «{name}» already exists")


def _commit_name(db: Session, name: str) -> None:
    """Commit; a concurrent writer that took the same name surfaces as a duplicate."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise NamaValidationError(f"A Nama Bank named «{name}» already exists") from e


def list_accounts(db: Session, active_only: bool = True) -> list[NamaAccount]:
    """Accounts in name order; disabled ones only when active_only is False."""
    stmt = select(NamaAccount)
    if active_only:
        stmt = stmt.where(NamaAccount.is_active.is_(True))
    with store_errors("list accounts"):
        return list(db.execute(stmt.order_by(NamaAccount.name, NamaAccount.id)).scalars().all())


class CreateAccountUseCase:
    """Use case: open a new Nama Bank"""

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock

    def execute(
        self,
        name: str,
        start_date: date | None = None,
        end_date: date | None = None,
        target_goal: int | None = None,
        description: str | None = None,
    ) -> NamaAccount:
        name = normalize_account_name(name)
        start_date = start_date or self.clock.today()
        validate_account_period(start_date, end_date)
        target_goal = validate_target_goal(target_goal)

        with store_errors("create account"):
            _ensure_unique_name(self.db, name)
            account = NamaAccount(
                name=name,
                description=(description or "").strip() or None,
                is_active=True,
                start_date=start_date,
                end_date=end_date,
                target_goal=target_goal,
            )
            self.db.add(account)
            _commit_name(self.db, name)
            self.db.refresh(account)

        logger.info("Nama Bank #%d created: %s", account.id, account.name)
        return account


class UpdateAccountUseCase:
    """Use case: edit account name, description, period or goal"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, changes: Dict[str, Any]) -> NamaAccount:
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise NamaValidationError(f"Cannot change: {', '.join(sorted(unknown))}")

        with store_errors("update account"):
            account = _get_account(self.db, account_id)

            if "name" in changes:
                changes["name"] = normalize_account_name(changes["name"])
                _ensure_unique_name(self.db, changes["name"], exclude_id=account_id)
            if "description" in changes:
                changes["description"] = (changes["description"] or "").strip() or None
            if "target_goal" in changes:
                changes["target_goal"] = validate_target_goal(changes["target_goal"])
            validate_account_period(
                changes.get("start_date", account.start_date),
                changes.get("end_date", account.end_date),
            )

            for key, value in changes.items():
                setattr(account, key, value)
            _commit_name(self.db, account.name)
            self.db.refresh(account)
        return account


class SetAccountStatusUseCase:
    """Use case: disable or re-enable an account (history is untouched)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, is_active: bool) -> NamaAccount:
        with store_errors("account status"):
            account = _get_account(self.db, account_id)
            if account.is_active == is_active:
                return account
            account.is_active = is_active
            self.db.commit()
            self.db.refresh(account)

        logger.info("Nama Bank #%d is now %s", account.id, account.status)
        return account
