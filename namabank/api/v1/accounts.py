"""
Nama Bank administration API endpoints (moderator tools)
"""
from datetime import date, datetime
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from namabank.api.deps import get_db, get_clock, get_current_user, http_error
from namabank.application.accounts import (
    CreateAccountUseCase, UpdateAccountUseCase, SetAccountStatusUseCase, list_accounts,
)
from namabank.domain.errors import NamaValidationError, StoreUnavailableError
from namabank.utils.clock import Clock


router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])


# === Request/Response models ===

class CreateAccountRequest(BaseModel):
    name: str
    description: str | None = None
    start_date: date | None = None  # default: today
    end_date: date | None = None
    target_goal: int | None = None


class UpdateAccountRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    target_goal: int | None = None


class AccountResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    status: str  # ACTIVE, DISABLED
    is_active: bool
    start_date: date | None = None
    end_date: date | None = None
    target_goal: int | None = None
    created_at: datetime


def _to_response(account) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        name=account.name,
        description=account.description,
        status=account.status,
        is_active=account.is_active,
        start_date=account.start_date,
        end_date=account.end_date,
        target_goal=account.target_goal,
        created_at=account.created_at,
    )


# === Endpoints ===

@router.get("/", response_model=list[AccountResponse])
def get_accounts(db: Session = Depends(get_db), include_disabled: bool = False):
    """List Nama Banks in name order"""
    try:
        accounts = list_accounts(db, active_only=not include_disabled)
    except StoreUnavailableError as e:
        raise http_error(e) from e
    return [_to_response(a) for a in accounts]


@router.post("/", response_model=AccountResponse)
def create_account(
    request: Request,
    req: CreateAccountRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Open a new Nama Bank"""
    get_current_user(request, db)
    try:
        account = CreateAccountUseCase(db, clock).execute(
            name=req.name,
            start_date=req.start_date,
            end_date=req.end_date,
            target_goal=req.target_goal,
            description=req.description,
        )
    except (NamaValidationError, StoreUnavailableError) as e:
        raise http_error(e, writing=True) from e
    return _to_response(account)


@router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    request: Request,
    req: UpdateAccountRequest,
    db: Session = Depends(get_db),
):
    get_current_user(request, db)
    try:
        account = UpdateAccountUseCase(db).execute(
            account_id, req.model_dump(exclude_unset=True)
        )
    except (NamaValidationError, StoreUnavailableError) as e:
        raise http_error(e, writing=True) from e
    return _to_response(account)


def _set_status(request: Request, db: Session, account_id: int, is_active: bool) -> AccountResponse:
    get_current_user(request, db)
    try:
        account = SetAccountStatusUseCase(db).execute(account_id, is_active)
    except (NamaValidationError, StoreUnavailableError) as e:
        raise http_error(e, writing=True) from e
    return _to_response(account)


@router.post("/{account_id}/disable", response_model=AccountResponse)
def disable_account(account_id: int, request: Request, db: Session = Depends(get_db)):
    """Hide from active listings; entries are kept"""
    return _set_status(request, db, account_id, False)


@router.post("/{account_id}/enable", response_model=AccountResponse)
def enable_account(account_id: int, request: Request, db: Session = Depends(get_db)):
    return _set_status(request, db, account_id, True)
