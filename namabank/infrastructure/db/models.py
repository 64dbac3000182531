"""
SQLAlchemy ORM models (accounts, users, links and the entry ledger)
"""
from datetime import date as date_type, datetime
from sqlalchemy import (
    String, Integer, Text, TIMESTAMP, Date, Boolean, ForeignKey,
    UniqueConstraint, CheckConstraint, Index, func,
)
from sqlalchemy.orm import Mapped, mapped_column

from namabank.infrastructure.db.session import Base
from namabank.domain.account import ACCOUNT_STATUS_ACTIVE, ACCOUNT_STATUS_DISABLED


class User(Base):
    """
    Devotee profile. Credentials live with the external auth provider.
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    whatsapp: Mapped[str | None] = mapped_column(String(32), nullable=True)

    city: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    state: Mapped[str | None] = mapped_column(String(128), nullable=True)
    country: Mapped[str | None] = mapped_column(String(128), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class NamaAccount(Base):
    """
    Nama Bank: a named collective tally that linked users contribute to.

    Accounts are never deleted once entries reference them; deactivation
    only hides them from active listings.
    """
    __tablename__ = "nama_accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    start_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    target_goal: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    @property
    def status(self) -> str:
        return ACCOUNT_STATUS_ACTIVE if self.is_active else ACCOUNT_STATUS_DISABLED


# Account names are unique case-insensitively
Index("uq_nama_accounts_name_lower", func.lower(NamaAccount.name), unique=True)


class UserAccountLink(Base):
    """
    Which accounts a user may submit entries against (set by moderators)
    """
    __tablename__ = "user_account_links"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("nama_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "account_id", name="uq_user_account_link"),
    )


class NamaEntry(Base):
    """
    Ledger row: one immutable contribution of `count` Namas.

    `entry_date` is the attribution date used by every windowed aggregate;
    `created_at` is only used to order feeds.
    """
    __tablename__ = "nama_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    account_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("nama_accounts.id", ondelete="RESTRICT"), nullable=False
    )

    count: Mapped[int] = mapped_column(Integer, nullable=False)
    source_type: Mapped[str] = mapped_column(String(32), nullable=False, server_default="manual")

    entry_date: Mapped[date_type] = mapped_column(Date, nullable=False, index=True)
    # Back-dated batch offerings keep the offered range for display
    start_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        CheckConstraint("count >= 0", name="ck_nama_entries_count_non_negative"),
        Index("ix_nama_entries_account_date", "account_id", "entry_date"),
        Index("ix_nama_entries_user_date", "user_id", "entry_date"),
    )
