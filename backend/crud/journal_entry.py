import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from crud.entry_numbers import generate_entry_number
from crud.general_ledger import post_entry_to_ledger
from crud.journal_validation import validate_journal_lines
from errors import ErrorKind, LedgerError, LedgerPersistenceError, LedgerStateError, LedgerValidationError
from models.audit_mixin import now_local
from models.chart_of_accounts import ChartOfAccounts
from models.journal_entry import JournalEntry, JournalEntryStatus, can_transition
from models.journal_item import JournalItem
from schemas.journal_entry import JournalEntryCreate
from utils.money import round_amount

logger = logging.getLogger(__name__)

# Attempts at allocating a fresh entry number when a concurrent creator wins the race.
MAX_NUMBER_ATTEMPTS = 3


def _check_line_accounts(db: Session, tenant_id: str, entry: JournalEntryCreate):
    account_ids = {item.account_id for item in entry.items}
    accounts = {
        account.id: account
        for account in db.query(ChartOfAccounts).filter(
            ChartOfAccounts.id.in_(account_ids),
            ChartOfAccounts.tenant_id == tenant_id
        ).all()
    }
    for index, item in enumerate(entry.items, start=1):
        account = accounts.get(item.account_id)
        if account is None:
            raise LedgerStateError(
                f"Line {index}: account with id {item.account_id} not found", ErrorKind.ACCOUNT_NOT_FOUND
            )
        if not account.is_active:
            raise LedgerValidationError(
                f"Line {index}: account {account.account_code} is inactive", ErrorKind.INVALID_ACCOUNT
            )


def _post(db: Session, db_entry: JournalEntry, posted_by: str):
    post_entry_to_ledger(db, db_entry)
    db_entry.status = JournalEntryStatus.POSTED
    db_entry.posted_by = posted_by
    db_entry.posted_at = now_local()
    db_entry.updated_by = posted_by


def create_journal_entry(
    db: Session,
    tenant_id: str,
    entry: JournalEntryCreate,
    created_by: str = "system",
    post: bool = False,
) -> JournalEntry:
    """
    Validate and store a journal entry with its lines as a draft.

    With ``post=True`` the entry is posted to the ledger in the same
    transaction, so either both happen or neither does. Nothing is written
    when any check fails.
    """
    validate_journal_lines(entry.items)
    _check_line_accounts(db, tenant_id, entry)

    for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
        try:
            entry_number, entry_year, sequence_number = generate_entry_number(db, tenant_id, entry.entry_date)
            db_entry = JournalEntry(
                tenant_id=tenant_id,
                entry_number=entry_number,
                entry_year=entry_year,
                sequence_number=sequence_number,
                entry_date=entry.entry_date,
                description=entry.description,
                reference=entry.reference,
                reference_type=entry.reference_type,
                reference_id=entry.reference_id,
                status=JournalEntryStatus.DRAFT,
                created_by=created_by,
            )
            for line_number, item in enumerate(entry.items, start=1):
                db_entry.items.append(JournalItem(
                    tenant_id=tenant_id,
                    account_id=item.account_id,
                    line_number=line_number,
                    debit=round_amount(item.debit),
                    credit=round_amount(item.credit),
                    description=item.description,
                ))
            db.add(db_entry)
            db.flush()

            if post:
                _post(db, db_entry, created_by)

            db.commit()
        except IntegrityError as e:
            db.rollback()
            if entry.reference_type and get_entry_by_reference(db, tenant_id, entry.reference_type, entry.reference_id):
                raise LedgerStateError(
                    f"A journal entry for {entry.reference_type} {entry.reference_id} already exists",
                    ErrorKind.DUPLICATE_REFERENCE,
                )
            logger.warning(f"Entry number collision for tenant {tenant_id} (attempt {attempt}/{MAX_NUMBER_ATTEMPTS}): {e.orig}")
            continue
        except LedgerError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create journal entry for tenant {tenant_id}: {e}")
            raise LedgerPersistenceError(f"Failed to create journal entry: {e}")

        db.refresh(db_entry)
        logger.info(
            f"Journal entry {db_entry.entry_number} created by {created_by} for tenant {tenant_id}"
            + (" and posted" if post else "")
        )
        return db_entry

    raise LedgerPersistenceError(
        f"Could not allocate an entry number after {MAX_NUMBER_ATTEMPTS} attempts"
    )


def post_journal_entry(db: Session, tenant_id: str, entry_id: int, posted_by: str = "system") -> JournalEntry:
    """Post a draft entry: ledger rows, account balances and the status flip commit together."""
    try:
        db_entry = (
            db.query(JournalEntry)
            .filter(JournalEntry.id == entry_id, JournalEntry.tenant_id == tenant_id)
            .with_for_update()
            .first()
        )
        if not db_entry:
            raise LedgerStateError(f"Journal entry with id {entry_id} not found", ErrorKind.ENTRY_NOT_FOUND)
        if not can_transition(db_entry.status, JournalEntryStatus.POSTED):
            raise LedgerStateError(
                f"Journal entry {db_entry.entry_number} is {db_entry.status.value}; only draft entries can be posted",
                ErrorKind.INVALID_STATE,
            )

        _post(db, db_entry, posted_by)
        db.commit()
    except LedgerError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to post journal entry {entry_id} for tenant {tenant_id}: {e}")
        raise LedgerPersistenceError(f"Failed to post journal entry {entry_id}: {e}")

    db.refresh(db_entry)
    logger.info(f"Journal entry {db_entry.entry_number} posted by {posted_by} for tenant {tenant_id}")
    return db_entry


def get_journal_entry(db: Session, tenant_id: str, entry_id: int) -> Optional[JournalEntry]:
    return db.query(JournalEntry).options(selectinload(JournalEntry.items)).filter(
        JournalEntry.id == entry_id,
        JournalEntry.tenant_id == tenant_id
    ).first()


def get_entry_by_reference(db: Session, tenant_id: str, reference_type: str, reference_id) -> Optional[JournalEntry]:
    if reference_id is None:
        return None
    return db.query(JournalEntry).filter(
        JournalEntry.tenant_id == tenant_id,
        JournalEntry.reference_type == reference_type,
        JournalEntry.reference_id == str(reference_id)
    ).first()


def get_journal_entries(
    db: Session,
    tenant_id: str,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    status: Optional[JournalEntryStatus] = None,
    limit: int = 100,
    offset: int = 0
) -> Tuple[List[JournalEntry], int]:
    """
    List entries newest first with their lines.

    Returns:
        (entries, total) where total counts every match ignoring limit/offset.
    """
    query = db.query(JournalEntry).filter(JournalEntry.tenant_id == tenant_id)

    if from_date:
        query = query.filter(JournalEntry.entry_date >= from_date)
    if to_date:
        query = query.filter(JournalEntry.entry_date <= to_date)
    if status:
        query = query.filter(JournalEntry.status == status)

    total = query.count()
    entries = (
        query.options(selectinload(JournalEntry.items))
        .order_by(JournalEntry.entry_date.desc(), JournalEntry.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return entries, total
