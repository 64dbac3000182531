"""
User administration use cases - registration records, status and account links.
"""
import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from namabank.domain.errors import NamaValidationError, NotFoundError
from namabank.infrastructure.db.models import NamaAccount, User, UserAccountLink
from namabank.infrastructure.ledger.repository import store_errors

logger = logging.getLogger(__name__)


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User #{user_id} not found")
    return user


def _clean(value: str | None) -> str | None:
    return (value or "").strip() or None


def list_users(db: Session) -> list[User]:
    """All users, newest first"""
    with store_errors("list users"):
        return list(db.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc())
        ).scalars().all())


def get_linked_accounts(db: Session, user_id: int, active_only: bool = True) -> list[NamaAccount]:
    stmt = (
        select(NamaAccount)
        .join(UserAccountLink, UserAccountLink.account_id == NamaAccount.id)
        .where(UserAccountLink.user_id == user_id)
    )
    if active_only:
        stmt = stmt.where(NamaAccount.is_active.is_(True))
    with store_errors("linked accounts"):
        return list(db.execute(stmt.order_by(NamaAccount.name, NamaAccount.id)).scalars().all())


class CreateUserUseCase:
    """Use case: record a devotee (credentials are handled by the auth provider)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        name: str,
        city: str | None = None,
        state: str | None = None,
        country: str | None = None,
        whatsapp: str | None = None,
    ) -> User:
        name = _clean(name)
        if not name:
            raise NamaValidationError("Name is required")

        with store_errors("create user"):
            user = User(
                name=name,
                city=_clean(city),
                state=_clean(state),
                country=_clean(country),
                whatsapp=_clean(whatsapp),
                is_active=True,
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)

        logger.info("User #%d registered", user.id)
        return user


class SetUserStatusUseCase:
    """Use case: disable or re-enable a user"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, is_active: bool) -> User:
        with store_errors("user status"):
            user = _get_user(self.db, user_id)
            if user.is_active != is_active:
                user.is_active = is_active
                self.db.commit()
                self.db.refresh(user)
        return user


class LinkUserToAccountsUseCase:
    """
    Use case: allocate Nama Banks to a user

    Existing links are kept; only missing ones are added.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, account_ids: Iterable[int]) -> list[int]:
        """
        Returns:
            Account ids that were newly linked, ascending
        """
        wanted = set(account_ids)
        with store_errors("link accounts"):
            _get_user(self.db, user_id)

            known = set(self.db.execute(
                select(NamaAccount.id).where(NamaAccount.id.in_(sorted(wanted)))
            ).scalars().all())
            missing = wanted - known
            if missing:
                raise NotFoundError(
                    f"Nama Bank not found: {', '.join(f'#{i}' for i in sorted(missing))}"
                )

            existing = set(self.db.execute(
                select(UserAccountLink.account_id).where(UserAccountLink.user_id == user_id)
            ).scalars().all())
            new_ids = sorted(wanted - existing)
            self.db.add_all(UserAccountLink(user_id=user_id, account_id=aid) for aid in new_ids)
            self.db.commit()

        if new_ids:
            logger.info("User #%d linked to accounts %s", user_id, new_ids)
        return new_ids


class UnlinkUserFromAccountUseCase:
    """Use case: withdraw an account from a user (their past entries stay)"""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, user_id: int, account_id: int) -> bool:
        with store_errors("unlink account"):
            link = self.db.execute(
                select(UserAccountLink).where(
                    UserAccountLink.user_id == user_id,
                    UserAccountLink.account_id == account_id,
                )
            ).scalar_one_or_none()
            if link is None:
                return False
            self.db.delete(link)
            self.db.commit()
        return True
