import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from errors import ErrorKind, LedgerStateError
from models.chart_of_accounts import ChartOfAccounts
from models.general_ledger import GeneralLedger
from models.journal_entry import JournalEntry
from utils.money import round_amount

logger = logging.getLogger(__name__)


def apply_movement(account: ChartOfAccounts, balance: Decimal, debit: Decimal, credit: Decimal) -> Decimal:
    """Signed update of a balance: debit-normal accounts grow with debits, the rest with credits."""
    if account.is_debit_normal:
        return round_amount(round_amount(balance) + round_amount(debit) - round_amount(credit))
    return round_amount(round_amount(balance) + round_amount(credit) - round_amount(debit))


def _prior_balance(db: Session, account: ChartOfAccounts, journal_entry_id: int) -> Decimal:
    last_row = (
        db.query(GeneralLedger)
        .filter(
            GeneralLedger.account_id == account.id,
            GeneralLedger.journal_entry_id != journal_entry_id,
        )
        .order_by(GeneralLedger.entry_date.desc(), GeneralLedger.id.desc())
        .first()
    )
    if last_row:
        return round_amount(last_row.running_balance)
    return round_amount(account.opening_balance)


def post_entry_to_ledger(db: Session, entry: JournalEntry) -> List[GeneralLedger]:
    """
    Write one general ledger row per line of ``entry`` and move account balances.

    Runs inside the caller's transaction and does not commit. Lines are
    processed in authoring order; a second line on the same account in this
    entry continues from the balance the first one produced.
    """
    account_ids = sorted({item.account_id for item in entry.items})

    # Lock every touched account in id order so concurrent posters cannot deadlock.
    accounts: Dict[int, ChartOfAccounts] = {
        account.id: account
        for account in db.query(ChartOfAccounts)
        .filter(ChartOfAccounts.id.in_(account_ids), ChartOfAccounts.tenant_id == entry.tenant_id)
        .order_by(ChartOfAccounts.id)
        .with_for_update()
        .all()
    }

    running: Dict[int, Decimal] = {}
    rows = []
    for item in entry.items:
        account = accounts.get(item.account_id)
        if account is None:
            raise LedgerStateError(f"Account with id {item.account_id} not found", ErrorKind.ACCOUNT_NOT_FOUND)

        if item.account_id in running:
            prior = running[item.account_id]
        else:
            prior = _prior_balance(db, account, entry.id)

        new_balance = apply_movement(account, prior, item.debit, item.credit)
        running[item.account_id] = new_balance

        row = GeneralLedger(
            tenant_id=entry.tenant_id,
            account_id=item.account_id,
            journal_entry_id=entry.id,
            journal_item_id=item.id,
            entry_date=entry.entry_date,
            debit=round_amount(item.debit),
            credit=round_amount(item.credit),
            running_balance=new_balance,
            description=item.description or entry.description,
            reference=entry.reference,
        )
        db.add(row)
        rows.append(row)

    for account_id, balance in running.items():
        accounts[account_id].current_balance = balance

    db.flush()
    logger.info(f"Entry {entry.entry_number} wrote {len(rows)} ledger rows across {len(running)} accounts")
    return rows


def query_ledger(
    db: Session,
    tenant_id: str,
    account_id: Optional[int] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
) -> List[GeneralLedger]:
    query = (
        db.query(GeneralLedger)
        .options(joinedload(GeneralLedger.account), joinedload(GeneralLedger.journal_entry))
        .filter(GeneralLedger.tenant_id == tenant_id)
    )

    if account_id:
        query = query.filter(GeneralLedger.account_id == account_id)
    if from_date:
        query = query.filter(GeneralLedger.entry_date >= from_date)
    if to_date:
        query = query.filter(GeneralLedger.entry_date <= to_date)

    return query.order_by(GeneralLedger.entry_date, GeneralLedger.id).all()
