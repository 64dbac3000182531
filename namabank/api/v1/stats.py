"""
Aggregate statistics API endpoints (window totals)
"""
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from namabank.api.deps import get_db, get_clock, get_current_user, http_error
from namabank.application.aggregation import AggregationService
from namabank.domain.errors import NotFoundError, StoreUnavailableError
from namabank.utils.clock import Clock
from namabank.utils.numbers import format_indian_count


router = APIRouter(prefix="/api/v1/stats", tags=["stats"])


class WindowTotalsResponse(BaseModel):
    today: int
    this_week: int
    this_month: int
    this_year: int
    overall: int
    overall_label: str


class AccountStatsResponse(WindowTotalsResponse):
    account_id: int
    name: str
    target_goal: int | None = None


def _totals_response(totals) -> WindowTotalsResponse:
    return WindowTotalsResponse(
        **totals.as_dict(),
        overall_label=format_indian_count(totals.overall),
    )


@router.get("/me", response_model=WindowTotalsResponse)
def my_stats(
    request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Window totals of the current user across all their accounts"""
    user = get_current_user(request, db)
    try:
        return _totals_response(AggregationService(db, clock).aggregate_for_user(user.id))
    except StoreUnavailableError as e:
        raise http_error(e) from e


@router.get("/accounts", response_model=list[AccountStatsResponse])
def active_account_stats(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Window totals for every active Nama Bank, in name order"""
    try:
        rows = AggregationService(db, clock).aggregate_for_all_active_accounts()
    except StoreUnavailableError as e:
        raise http_error(e) from e
    return [
        AccountStatsResponse(**row, overall_label=format_indian_count(row["overall"]))
        for row in rows
    ]


@router.get("/accounts/{account_id}", response_model=AccountStatsResponse)
def account_stats(
    account_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Window totals for one Nama Bank (disabled accounts included)"""
    service = AggregationService(db, clock)
    try:
        account = service.get_account(account_id)
        totals = service.aggregate_for_account(account_id)
    except (NotFoundError, StoreUnavailableError) as e:
        raise http_error(e) from e
    return AccountStatsResponse(
        account_id=account.id,
        name=account.name,
        target_goal=account.target_goal,
        **totals.as_dict(),
        overall_label=format_indian_count(totals.overall),
    )


@router.get("/users/{user_id}", response_model=WindowTotalsResponse)
def user_stats(
    user_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Window totals for one user"""
    service = AggregationService(db, clock)
    try:
        service.get_user(user_id)
        return _totals_response(service.aggregate_for_user(user_id))
    except (NotFoundError, StoreUnavailableError) as e:
        raise http_error(e) from e
