from datetime import date
from typing import Tuple
from sqlalchemy.orm import Session
from models.journal_entry import JournalEntry

ENTRY_NUMBER_PREFIX = "JE"


def format_entry_number(year: int, sequence: int) -> str:
    return f"{ENTRY_NUMBER_PREFIX}-{year}-{sequence:04d}"


def generate_entry_number(db: Session, tenant_id: str, entry_date: date) -> Tuple[str, int, int]:
    """
    Allocate the next entry number for the tenant in the entry date's year.

    Must run inside the transaction that inserts the entry. The latest entry of
    the year is read FOR UPDATE so concurrent creators queue behind it; the
    (tenant_id, entry_year, sequence_number) unique constraint catches the
    first-entry-of-the-year race where there is no row to lock.

    Returns:
        (entry_number, year, sequence_number)
    """
    year = entry_date.year
    last_entry = (
        db.query(JournalEntry)
        .filter(JournalEntry.tenant_id == tenant_id, JournalEntry.entry_year == year)
        .order_by(JournalEntry.sequence_number.desc())
        .with_for_update()
        .first()
    )
    next_sequence = (last_entry.sequence_number if last_entry else 0) + 1
    return format_entry_number(year, next_sequence), year, next_sequence
