"""
FastAPI dependencies (DB session, clock, current user) and error mapping
"""
from fastapi import Request, HTTPException, status
from sqlalchemy.orm import Session

from namabank.config import get_settings
from namabank.domain.errors import (
    NamaValidationError, NotFoundError, UnlinkedAccountError, StoreUnavailableError,
)
from namabank.infrastructure.db.session import get_db as _get_db
from namabank.infrastructure.db.models import User
from namabank.utils.clock import Clock, SystemClock


# Re-export get_db for routers
get_db = _get_db


def get_clock() -> Clock:
    """Wall clock in the configured timezone (overridden in tests)"""
    return SystemClock(get_settings().TIMEZONE)


def get_current_user(request: Request, db: Session) -> User:
    """
    Current user from the session cookie set by the auth layer

    Raises:
        HTTPException(401): not logged in, or the user no longer exists
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return user


def http_error(exc: Exception, writing: bool = False) -> HTTPException:
    """
    Translate a domain error into the HTTP answer the UI shows verbatim.

    A failed write is reported as "may not have been recorded": the client
    must check its recent entries instead of retrying blindly.
    """
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, UnlinkedAccountError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, NamaValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, StoreUnavailableError):
        detail = (
            "The Nama ledger is unavailable; your offering may not have been recorded. "
            "Check your recent entries before submitting again."
            if writing else
            "Statistics are temporarily unavailable, please try again shortly."
        )
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
    raise exc
