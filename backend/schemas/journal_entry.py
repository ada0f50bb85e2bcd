from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import date, datetime
from models.journal_entry import JournalEntryStatus
from .journal_item import JournalItemCreate, JournalItem

class JournalEntryBase(BaseModel):
    entry_date: date
    description: str
    reference: Optional[str] = None
    reference_type: Optional[str] = None
    reference_id: Optional[str] = None

    @field_validator('reference_id', mode='before')
    @classmethod
    def coerce_reference_id(cls, v):
        # Domain records use integer ids; the ledger keys them as text.
        return None if v is None else str(v)

class JournalEntryCreate(JournalEntryBase):
    items: List[JournalItemCreate]

class JournalEntry(JournalEntryBase):
    id: int
    tenant_id: str
    entry_number: str
    status: JournalEntryStatus
    created_by: Optional[str] = None
    posted_by: Optional[str] = None
    posted_at: Optional[datetime] = None
    items: List[JournalItem] = []

    class Config:
        from_attributes = True

class JournalEntryList(BaseModel):
    entries: List[JournalEntry]
    total: int
    limit: int
    offset: int
