from pydantic import BaseModel
from decimal import Decimal
from typing import Optional

class JournalItemBase(BaseModel):
    account_id: int
    # Sign and exclusivity rules are enforced by the entry validator so that
    # each violation surfaces with its own error kind.
    debit: Decimal = Decimal("0")
    credit: Decimal = Decimal("0")
    description: Optional[str] = None

class JournalItemCreate(JournalItemBase):
    pass

class JournalItem(JournalItemBase):
    id: int
    journal_entry_id: int
    line_number: int

    class Config:
        from_attributes = True
