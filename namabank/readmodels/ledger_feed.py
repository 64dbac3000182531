"""
Ledger feeds - recent entries and recent devotees for dashboards.

All functions accept a SQLAlchemy Session and return plain dicts/lists.
"""
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from namabank.infrastructure.db.models import NamaAccount, NamaEntry, User, UserAccountLink
from namabank.infrastructure.ledger.repository import LedgerRepository, store_errors


def _names(db: Session, model, ids: set[int]) -> dict[int, str]:
    if not ids:
        return {}
    rows = db.execute(select(model.id, model.name).where(model.id.in_(sorted(ids)))).all()
    return {r[0]: r[1] for r in rows}


def _entry_dict(e: NamaEntry, account_names: dict, user_names: dict | None = None) -> dict:
    row = {
        "id": e.id,
        "count": e.count,
        "source_type": e.source_type,
        "entry_date": e.entry_date,
        "start_date": e.start_date,
        "end_date": e.end_date,
        "created_at": e.created_at,
        "account_id": e.account_id,
        "account_name": account_names.get(e.account_id, f"#{e.account_id}"),
    }
    if user_names is not None:
        row["user_id"] = e.user_id
        row["user_name"] = user_names.get(e.user_id, f"#{e.user_id}")
    return row


def get_user_recent_entries(db: Session, user_id: int, limit: int = 10) -> list[dict]:
    """A user's own latest offerings, newest first."""
    entries = LedgerRepository(db).recent_entries(limit, user_id=user_id)
    with store_errors("recent entry names"):
        accounts = _names(db, NamaAccount, {e.account_id for e in entries})
    return [_entry_dict(e, accounts) for e in entries]


def get_recent_entries(db: Session, limit: int = 15) -> list[dict]:
    """Latest offerings across everyone, with user and account names."""
    entries = LedgerRepository(db).recent_entries(limit)
    with store_errors("recent entry names"):
        accounts = _names(db, NamaAccount, {e.account_id for e in entries})
        users = _names(db, User, {e.user_id for e in entries})
    return [_entry_dict(e, accounts, users) for e in entries]


def get_recent_users(db: Session, today: date, limit: int = 8) -> list[dict]:
    """
    Newest active devotees with their linked Nama Bank names and overall total.
    """
    with store_errors("recent users"):
        users = db.execute(
            select(User)
            .where(User.is_active.is_(True))
            .order_by(User.created_at.desc(), User.id.desc())
            .limit(limit)
        ).scalars().all()
        if not users:
            return []
        user_ids = [u.id for u in users]

        link_rows = db.execute(
            select(UserAccountLink.user_id, NamaAccount.name)
            .join(NamaAccount, NamaAccount.id == UserAccountLink.account_id)
            .where(UserAccountLink.user_id.in_(user_ids))
            .order_by(NamaAccount.name)
        ).all()
        total_rows = db.execute(
            select(NamaEntry.user_id, func.sum(NamaEntry.count))
            .where(NamaEntry.user_id.in_(user_ids), NamaEntry.entry_date <= today)
            .group_by(NamaEntry.user_id)
        ).all()

    links: dict[int, list[str]] = {}
    for uid, name in link_rows:
        links.setdefault(uid, []).append(name)
    totals = {uid: int(total or 0) for uid, total in total_rows}

    return [
        {
            "user_id": u.id,
            "name": u.name,
            "city": u.city,
            "created_at": u.created_at,
            "accounts": links.get(u.id, []),
            "total_count": totals.get(u.id, 0),
        }
        for u in users
    ]
