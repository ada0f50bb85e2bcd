from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from crud import journal_entry as journal_entry_crud
from database import get_db
from errors import LedgerError
from models.journal_entry import JournalEntryStatus
from schemas.journal_entry import JournalEntry, JournalEntryCreate, JournalEntryList
from utils.http_errors import to_http_exception
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(
    prefix="/journal-entries",
    tags=["Journal Entries"],
)

@router.post("/", response_model=JournalEntry, status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    entry: JournalEntryCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id)
):
    """Create a draft journal entry. Debits must equal credits."""
    try:
        return journal_entry_crud.create_journal_entry(db, tenant_id, entry, created_by=user_id)
    except LedgerError as e:
        raise to_http_exception(e)


@router.get("/", response_model=JournalEntryList)
def get_journal_entries(
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    status: Optional[JournalEntryStatus] = None,
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    entries, total = journal_entry_crud.get_journal_entries(
        db, tenant_id, from_date=from_date, to_date=to_date, status=status, limit=limit, offset=offset
    )
    return JournalEntryList(entries=entries, total=total, limit=limit, offset=offset)


@router.get("/{entry_id}", response_model=JournalEntry)
def get_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    db_entry = journal_entry_crud.get_journal_entry(db, tenant_id, entry_id)
    if db_entry is None:
        raise HTTPException(status_code=404, detail="Journal entry not found")
    return db_entry


@router.post("/{entry_id}/post", response_model=JournalEntry)
def post_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id)
):
    try:
        return journal_entry_crud.post_journal_entry(db, tenant_id, entry_id, posted_by=user_id)
    except LedgerError as e:
        raise to_http_exception(e)
