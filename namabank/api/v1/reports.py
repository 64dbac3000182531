"""
Dashboard report API endpoints (public reports page and admin overview)
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from namabank.api.deps import get_db, get_clock, get_current_user, http_error
from namabank.application.ranking import LeaderboardService
from namabank.application.reports import ReportService
from namabank.domain.errors import StoreUnavailableError
from namabank.domain.windows import WINDOWS, WINDOW_THIS_WEEK
from namabank.utils.clock import Clock


router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


def _run(build):
    try:
        return build()
    except StoreUnavailableError as e:
        raise http_error(e) from e


@router.get("/public")
def public_reports(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    """Everything the public reports page shows; failed sections are listed"""
    return ReportService(db, clock).public_dashboard()


@router.get("/admin")
def admin_overview(
    request: Request,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    get_current_user(request, db)
    return ReportService(db, clock).admin_dashboard()


@router.get("/daily")
def daily(
    days: int = Query(7, ge=1, le=366),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return _run(lambda: ReportService(db, clock).daily_series(days))


@router.get("/weekly")
def weekly(
    weeks: int = Query(4, ge=1, le=53),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return _run(lambda: ReportService(db, clock).weekly_series(weeks))


@router.get("/source-ratio")
def source_ratio(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)):
    return _run(lambda: ReportService(db, clock).source_type_ratio())


@router.get("/cities")
def cities(
    top: int | None = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return _run(lambda: ReportService(db, clock).city_breakdown(top))


@router.get("/new-devotees")
def new_devotees(
    days: int = Query(7, ge=1, le=366),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return _run(lambda: ReportService(db, clock).new_subjects_per_day(days))


@router.get("/leaderboard")
def leaderboard(
    limit: int | None = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Top contributors by overall total"""
    rows = _run(lambda: LeaderboardService(db, clock).top_contributors(limit))
    return [r.as_dict() for r in rows]


@router.get("/top-growing")
def top_growing(
    window: str = WINDOW_THIS_WEEK,
    limit: int | None = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Active Nama Banks ranked by their total inside a window"""
    if window not in WINDOWS:
        raise HTTPException(status_code=400, detail=f"window must be one of: {', '.join(WINDOWS)}")
    rows = _run(lambda: LeaderboardService(db, clock).top_growing_accounts(window, limit))
    return [r.as_dict() for r in rows]
