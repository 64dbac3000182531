"""
Nama entry API endpoints (manual and audio offerings)
"""
from datetime import date, datetime
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from namabank.api.deps import get_db, get_clock, get_current_user, http_error
from namabank.application.ingestion import SubmitEntryUseCase, SubmitBatchUseCase
from namabank.domain.entry import EntryDraft, SOURCE_TYPE_MANUAL
from namabank.domain.errors import NamaValidationError, StoreUnavailableError
from namabank.readmodels.ledger_feed import get_user_recent_entries
from namabank.utils.clock import Clock


router = APIRouter(prefix="/api/v1/entries", tags=["entries"])


# === Request/Response models ===

class SubmitEntryRequest(BaseModel):
    account_id: int
    count: int
    source_type: str = SOURCE_TYPE_MANUAL  # manual, audio
    entry_date: date | None = None  # default: today
    start_date: date | None = None  # back-dated offering period
    end_date: date | None = None


class BatchItem(BaseModel):
    account_id: int
    count: int
    source_type: str | None = None  # falls back to the batch source type
    entry_date: date | None = None
    start_date: date | None = None
    end_date: date | None = None


class SubmitBatchRequest(BaseModel):
    source_type: str = SOURCE_TYPE_MANUAL
    entries: list[BatchItem] = Field(default_factory=list)


class EntryResponse(BaseModel):
    id: int
    account_id: int
    count: int
    source_type: str
    entry_date: date
    start_date: date | None = None
    end_date: date | None = None
    created_at: datetime


class BatchResponse(BaseModel):
    entries: list[EntryResponse]
    total_count: int


def _to_response(entry) -> EntryResponse:
    return EntryResponse(
        id=entry.id,
        account_id=entry.account_id,
        count=entry.count,
        source_type=entry.source_type,
        entry_date=entry.entry_date,
        start_date=entry.start_date,
        end_date=entry.end_date,
        created_at=entry.created_at,
    )


# === Endpoints ===

@router.post("/", response_model=EntryResponse)
def submit_entry(
    request: Request,
    req: SubmitEntryRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Offer Namas to one linked Nama Bank"""
    user = get_current_user(request, db)

    try:
        entry = SubmitEntryUseCase(db, clock).execute(
            user_id=user.id,
            account_id=req.account_id,
            count=req.count,
            source_type=req.source_type,
            entry_date=req.entry_date,
            start_date=req.start_date,
            end_date=req.end_date,
        )
    except (NamaValidationError, StoreUnavailableError) as e:
        raise http_error(e, writing=True) from e

    return _to_response(entry)


@router.post("/batch", response_model=BatchResponse)
def submit_batch(
    request: Request,
    req: SubmitBatchRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Offer Namas to several Nama Banks at once (all or nothing)"""
    user = get_current_user(request, db)

    drafts = [
        EntryDraft(
            account_id=item.account_id,
            count=item.count,
            source_type=item.source_type or req.source_type,
            entry_date=item.entry_date,
            start_date=item.start_date,
            end_date=item.end_date,
        )
        for item in req.entries
    ]
    try:
        entries = SubmitBatchUseCase(db, clock).execute(user.id, drafts)
    except (NamaValidationError, StoreUnavailableError) as e:
        raise http_error(e, writing=True) from e

    return BatchResponse(
        entries=[_to_response(e) for e in entries],
        total_count=sum(e.count for e in entries),
    )


@router.get("/recent")
def recent_entries(
    request: Request,
    db: Session = Depends(get_db),
    limit: int = 10,
):
    """The current user's latest offerings"""
    user = get_current_user(request, db)
    if limit < 1 or limit > 100:
        raise HTTPException(status_code=400, detail="limit must be between 1 and 100")
    try:
        return get_user_recent_entries(db, user.id, limit=limit)
    except StoreUnavailableError as e:
        raise http_error(e) from e
