"""
Nama entry domain rules - validation of a single offering before it reaches the ledger
"""
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict

from namabank.domain.errors import NamaValidationError

SOURCE_TYPE_MANUAL = "manual"  # typed in by the devotee
SOURCE_TYPE_AUDIO = "audio"    # counted by the audio player loop

KNOWN_SOURCE_TYPES = (SOURCE_TYPE_MANUAL, SOURCE_TYPE_AUDIO)

# New ingestion channels only need a slug, no schema change
_SOURCE_TYPE_RE = re.compile(r"[a-z][a-z0-9_]{0,31}")


def normalize_source_type(source_type: str | None) -> str:
    """
    Lower-case and check a source type.

    Example:
        >>> normalize_source_type(" Audio ")
        'audio'
    """
    value = (source_type or SOURCE_TYPE_MANUAL).strip().lower()
    if not _SOURCE_TYPE_RE.fullmatch(value):
        raise NamaValidationError(f"Unknown source type: {source_type!r}")
    return value


def validate_count(count: Any, max_count: int) -> int:
    """A count must be a positive whole number no larger than max_count."""
    if isinstance(count, bool) or not isinstance(count, int):
        raise NamaValidationError(f"Nama count must be a whole number, got {count!r}")
    if count <= 0:
        raise NamaValidationError(f"Nama count must be greater than zero, got {count}")
    if count > max_count:
        raise NamaValidationError(f"Nama count {count} exceeds the limit of {max_count} per entry")
    return count


@dataclass(frozen=True)
class EntryDraft:
    """
    One requested offering, validated against "today" before persistence.

    start_date/end_date describe a back-dated batch offering and are only
    stored for display; entry_date alone drives aggregation.
    """
    account_id: int
    count: int
    source_type: str = SOURCE_TYPE_MANUAL
    entry_date: date | None = None
    start_date: date | None = None
    end_date: date | None = None

    def validated(self, today: date, max_count: int) -> "EntryDraft":
        count = validate_count(self.count, max_count)
        source_type = normalize_source_type(self.source_type)
        entry_date = self.entry_date or today
        if entry_date > today:
            raise NamaValidationError(
                f"Entry date {entry_date.isoformat()} is in the future"
            )

        start_date, end_date = self.start_date, self.end_date
        if (start_date is None) != (end_date is None):
            raise NamaValidationError("Offering period needs both a start and an end date")
        if start_date is not None:
            if end_date < start_date:
                raise NamaValidationError("Offering period ends before it starts")
            if end_date > today:
                raise NamaValidationError("Offering period cannot end in the future")

        return EntryDraft(
            account_id=self.account_id,
            count=count,
            source_type=source_type,
            entry_date=entry_date,
            start_date=start_date,
            end_date=end_date,
        )

    def to_row(self, user_id: int) -> Dict[str, Any]:
        """Column values for the ledger insert"""
        return {
            "user_id": user_id,
            "account_id": self.account_id,
            "count": self.count,
            "source_type": self.source_type,
            "entry_date": self.entry_date,
            "start_date": self.start_date,
            "end_date": self.end_date,
        }
