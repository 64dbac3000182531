"""
User administration API endpoints (registration record, status, Nama Bank allocation)
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from namabank.api.deps import get_db, get_current_user, http_error
from namabank.application.users import (
    CreateUserUseCase, SetUserStatusUseCase, LinkUserToAccountsUseCase,
    UnlinkUserFromAccountUseCase, get_linked_accounts,
)
from namabank.domain.errors import NamaValidationError, StoreUnavailableError


router = APIRouter(prefix="/api/v1/users", tags=["users"])


# === Request/Response models ===

class CreateUserRequest(BaseModel):
    name: str
    city: str | None = None
    state: str | None = None
    country: str | None = None
    whatsapp: str | None = None


class UserResponse(BaseModel):
    id: int
    name: str
    city: str | None = None
    state: str | None = None
    country: str | None = None
    is_active: bool
    created_at: datetime


class LinkAccountsRequest(BaseModel):
    account_ids: list[int]


class LinkedAccountResponse(BaseModel):
    account_id: int
    name: str
    is_active: bool


class LinkAccountsResponse(BaseModel):
    newly_linked: list[int]
    accounts: list[LinkedAccountResponse]


def _to_response(user) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        city=user.city,
        state=user.state,
        country=user.country,
        is_active=user.is_active,
        created_at=user.created_at,
    )


def _linked(db: Session, user_id: int) -> list[LinkedAccountResponse]:
    return [
        LinkedAccountResponse(account_id=a.id, name=a.name, is_active=a.is_active)
        for a in get_linked_accounts(db, user_id, active_only=False)
    ]


# === Endpoints ===

@router.post("/", response_model=UserResponse)
def create_user(request: Request, req: CreateUserRequest, db: Session = Depends(get_db)):
    get_current_user(request, db)
    try:
        user = CreateUserUseCase(db).execute(
            name=req.name,
            city=req.city,
            state=req.state,
            country=req.country,
            whatsapp=req.whatsapp,
        )
    except (NamaValidationError, StoreUnavailableError) as e:
        raise http_error(e, writing=True) from e
    return _to_response(user)


@router.post("/{user_id}/disable", response_model=UserResponse)
def disable_user(user_id: int, request: Request, db: Session = Depends(get_db)):
    get_current_user(request, db)
    try:
        return _to_response(SetUserStatusUseCase(db).execute(user_id, False))
    except (NamaValidationError, StoreUnavailableError) as e:
        raise http_error(e, writing=True) from e


@router.post("/{user_id}/enable", response_model=UserResponse)
def enable_user(user_id: int, request: Request, db: Session = Depends(get_db)):
    get_current_user(request, db)
    try:
        return _to_response(SetUserStatusUseCase(db).execute(user_id, True))
    except (NamaValidationError, StoreUnavailableError) as e:
        raise http_error(e, writing=True) from e


@router.get("/{user_id}/accounts", response_model=list[LinkedAccountResponse])
def user_accounts(user_id: int, request: Request, db: Session = Depends(get_db)):
    """Nama Banks allocated to a user, disabled ones included"""
    get_current_user(request, db)
    try:
        return _linked(db, user_id)
    except StoreUnavailableError as e:
        raise http_error(e) from e


@router.post("/{user_id}/accounts", response_model=LinkAccountsResponse)
def link_accounts(
    user_id: int,
    request: Request,
    req: LinkAccountsRequest,
    db: Session = Depends(get_db),
):
    """Allocate Nama Banks; already linked ones are left alone"""
    get_current_user(request, db)
    try:
        new_ids = LinkUserToAccountsUseCase(db).execute(user_id, req.account_ids)
        return LinkAccountsResponse(newly_linked=new_ids, accounts=_linked(db, user_id))
    except (NamaValidationError, StoreUnavailableError) as e:
        raise http_error(e, writing=True) from e


@router.delete("/{user_id}/accounts/{account_id}")
def unlink_account(user_id: int, account_id: int, request: Request, db: Session = Depends(get_db)):
    get_current_user(request, db)
    try:
        removed = UnlinkUserFromAccountUseCase(db).execute(user_id, account_id)
    except StoreUnavailableError as e:
        raise http_error(e, writing=True) from e
    return {"removed": removed}
