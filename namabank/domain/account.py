"""
Nama Bank account rules
"""
from datetime import date

from namabank.domain.errors import NamaValidationError

ACCOUNT_STATUS_ACTIVE = "ACTIVE"      # listed, accepts entries
ACCOUNT_STATUS_DISABLED = "DISABLED"  # hidden from active listings, history kept


def normalize_account_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise NamaValidationError("Account name is required")
    if len(name) > 255:
        raise NamaValidationError("Account name must be at most 255 characters")
    return name


def validate_account_period(start_date: date | None, end_date: date | None) -> None:
    if start_date and end_date and end_date < start_date:
        raise NamaValidationError(
            f"End date {end_date.isoformat()} is before start date {start_date.isoformat()}"
        )


def validate_target_goal(target_goal: int | None) -> int | None:
    if target_goal is None:
        return None
    if isinstance(target_goal, bool) or not isinstance(target_goal, int):
        raise NamaValidationError("Target goal must be a whole number")
    if target_goal <= 0:
        raise NamaValidationError("Target goal must be greater than zero")
    return target_goal
