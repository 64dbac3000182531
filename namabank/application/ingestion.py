"""
Entry ingestion use cases - validate devotion offerings and append them to the ledger.

Nothing is written unless every row of a submission is valid, and a
submission becomes visible to readers in a single commit. Aggregates are
computed on read, so there is no counter to update here.
"""
import logging
from datetime import date
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from namabank.config import get_settings
from namabank.domain.entry import EntryDraft, SOURCE_TYPE_MANUAL
from namabank.domain.errors import (
    NamaValidationError, NotFoundError, UnlinkedAccountError, StoreUnavailableError,
)
from namabank.infrastructure.db.models import NamaAccount, NamaEntry, User, UserAccountLink
from namabank.infrastructure.ledger.repository import LedgerRepository, store_errors
from namabank.utils.clock import Clock

logger = logging.getLogger(__name__)


class _IngestionBase:

    def __init__(self, db: Session, clock: Clock):
        self.db = db
        self.clock = clock
        self.ledger = LedgerRepository(db)
        self.settings = get_settings()

    def _check_links(self, user_id: int, account_ids: Iterable[int]) -> None:
        """
        The user must exist and be active; every account must be linked to
        the user and active.

        Raises:
            NotFoundError: unknown user
            NamaValidationError: disabled user
            UnlinkedAccountError: account not linked, or linked but disabled
        """
        wanted = set(account_ids)
        with store_errors("link check"):
            user = self.db.get(User, user_id)
            if user is None:
                raise NotFoundError(f"User #{user_id} not found")
            if not user.is_active:
                raise NamaValidationError(f"User #{user_id} is disabled and cannot offer Namas")

            rows = self.db.execute(
                select(NamaAccount.id, NamaAccount.is_active)
                .join(UserAccountLink, UserAccountLink.account_id == NamaAccount.id)
                .where(
                    UserAccountLink.user_id == user_id,
                    NamaAccount.id.in_(sorted(wanted)),
                )
            ).all()

        linked = {account_id: is_active for account_id, is_active in rows}
        for account_id in sorted(wanted):
            if account_id not in linked:
                raise UnlinkedAccountError(user_id, account_id)
            if not linked[account_id]:
                raise UnlinkedAccountError(user_id, account_id, reason="disabled")

    def _append_and_commit(self, user_id: int, drafts: List[EntryDraft]) -> List[NamaEntry]:
        try:
            entries = self.ledger.append_entries(d.to_row(user_id) for d in drafts)
            with store_errors("commit"):
                self.db.commit()
        except StoreUnavailableError:
            self.db.rollback()
            raise
        return entries


class SubmitEntryUseCase(_IngestionBase):
    """
    Use case: offer Namas to one linked account

    Process:
    1. Validate count, source type and dates (entry_date defaults to today)
    2. Check the account is linked to the user and active
    3. Append the row and commit
    """

    def execute(
        self,
        user_id: int,
        account_id: int,
        count: int,
        source_type: str = SOURCE_TYPE_MANUAL,
        entry_date: date | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> NamaEntry:
        """
        Returns:
            The persisted entry

        Raises:
            NamaValidationError, UnlinkedAccountError, StoreUnavailableError
        """
        draft = EntryDraft(
            account_id=account_id,
            count=count,
            source_type=source_type,
            entry_date=entry_date,
            start_date=start_date,
            end_date=end_date,
        ).validated(self.clock.today(), self.settings.MAX_ENTRY_COUNT)

        self._check_links(user_id, [account_id])
        entry, = self._append_and_commit(user_id, [draft])

        logger.info(
            "Entry #%d: user=%d account=%d count=%d source=%s date=%s",
            entry.id, user_id, account_id, draft.count, draft.source_type,
            draft.entry_date.isoformat(),
        )
        return entry


class SubmitBatchUseCase(_IngestionBase):
    """
    Use case: offer Namas to several accounts at once (all-or-nothing)

    One invalid element rejects the whole batch before the store is touched;
    the valid batch is appended in one transaction.
    """

    def execute(self, user_id: int, drafts: List[EntryDraft]) -> List[NamaEntry]:
        if not drafts:
            raise NamaValidationError("Please enter at least one Nama count")
        if len(drafts) > self.settings.MAX_BATCH_SIZE:
            raise NamaValidationError(
                f"A batch may hold at most {self.settings.MAX_BATCH_SIZE} entries, got {len(drafts)}"
            )

        today = self.clock.today()
        validated = []
        for position, draft in enumerate(drafts, start=1):
            try:
                validated.append(draft.validated(today, self.settings.MAX_ENTRY_COUNT))
            except NamaValidationError as e:
                raise NamaValidationError(f"Entry {position}: {e}") from e

        self._check_links(user_id, [d.account_id for d in validated])
        entries = self._append_and_commit(user_id, validated)

        logger.info(
            "Batch of %d entries: user=%d total=%d",
            len(entries), user_id, sum(d.count for d in validated),
        )
        return entries
