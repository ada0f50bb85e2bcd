import logging
import threading
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from crud.chart_of_accounts import require_account
from crud.general_ledger import apply_movement
from models.chart_of_accounts import ChartOfAccounts
from models.general_ledger import GeneralLedger
from schemas.ledgers import (
    AccountDiagnostics,
    BalanceDiscrepancy,
    DiagnosticAccount,
    DiagnosticLedgerRow,
    RecalculationError,
    RecalculationResult,
)
from utils.money import round_amount, differs

logger = logging.getLogger(__name__)


def _ledger_rows(db: Session, account_id: int, with_entries: bool = False):
    query = db.query(GeneralLedger).filter(GeneralLedger.account_id == account_id)
    if with_entries:
        query = query.options(joinedload(GeneralLedger.journal_entry))
    return query.order_by(GeneralLedger.entry_date, GeneralLedger.id).all()


def _recalculate_account(db: Session, account: ChartOfAccounts, result: RecalculationResult):
    code = account.account_code
    balance = round_amount(account.opening_balance)
    corrected = 0
    for row in _ledger_rows(db, account.id):
        balance = apply_movement(account, balance, row.debit, row.credit)
        if differs(row.running_balance, balance):
            row.running_balance = balance
            corrected += 1

    stored = round_amount(account.current_balance)
    discrepancy = None
    if differs(stored, balance):
        discrepancy = BalanceDiscrepancy(
            account_id=account.id,
            account_code=account.account_code,
            account_name=account.account_name,
            current_balance=stored,
            calculated_balance=balance,
            difference=round_amount(balance - stored),
        )
        account.current_balance = balance

    db.commit()

    # Counters only reflect committed corrections.
    result.corrected_rows += corrected
    if discrepancy is not None:
        result.discrepancies.append(discrepancy)
    if corrected or discrepancy is not None:
        result.updated_accounts += 1
        logger.info(
            f"Account {code}: corrected {corrected} ledger rows, balance {stored} -> {balance}"
        )


def recalculate_account_balances(
    db: Session,
    tenant_id: str,
    account_id: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
) -> RecalculationResult:
    """
    Replay each account's ledger from its opening balance and repair drift.

    Every account is reconciled and committed on its own; a failure on one
    account is rolled back, recorded under ``errors`` and the run moves on.
    When ``cancel_event`` is set the run stops before the next account and
    keeps what was already committed. Running it twice changes nothing the
    second time.

    Without ``account_id`` all active accounts of the tenant are processed;
    with it only that account is, whatever its active flag.
    """
    if account_id is not None:
        accounts = [require_account(db, tenant_id, account_id)]
    else:
        accounts = db.query(ChartOfAccounts).filter(
            ChartOfAccounts.tenant_id == tenant_id,
            ChartOfAccounts.is_active.is_(True)
        ).order_by(ChartOfAccounts.account_code).all()

    result = RecalculationResult(total_accounts=len(accounts))
    snapshots = [(a.id, a.account_code, a.account_name) for a in accounts]
    logger.info(f"Recalculating balances of {len(accounts)} accounts for tenant {tenant_id}")

    for account_pk, code, name in snapshots:
        if cancel_event is not None and cancel_event.is_set():
            result.cancelled = True
            logger.warning(f"Balance recalculation for tenant {tenant_id} cancelled after {result.processed_accounts} accounts")
            break
        try:
            account = db.query(ChartOfAccounts).filter(ChartOfAccounts.id == account_pk).with_for_update().one()
            _recalculate_account(db, account, result)
        except Exception as e:
            db.rollback()
            logger.error(f"Error recalculating account {code} for tenant {tenant_id}: {e}")
            result.errors.append(RecalculationError(
                account_id=account_pk,
                account_code=code,
                account_name=name,
                error=str(e),
            ))
        result.processed_accounts += 1

    logger.info(
        f"Recalculation for tenant {tenant_id} finished: {result.updated_accounts} updated, "
        f"{len(result.discrepancies)} discrepancies, {len(result.errors)} errors"
    )
    return result


def get_account_diagnostics(db: Session, tenant_id: str, account_id: int) -> AccountDiagnostics:
    """Replay an account's ledger read-only and compare against what is stored."""
    account = require_account(db, tenant_id, account_id)

    balance = round_amount(account.opening_balance)
    entries = []
    for row in _ledger_rows(db, account.id, with_entries=True):
        balance = apply_movement(account, balance, row.debit, row.credit)
        entries.append(DiagnosticLedgerRow(
            id=row.id,
            entry_date=row.entry_date,
            journal_entry_id=row.journal_entry_id,
            journal_entry_number=row.journal_entry.entry_number if row.journal_entry else None,
            debit=round_amount(row.debit),
            credit=round_amount(row.credit),
            stored_running_balance=round_amount(row.running_balance),
            calculated_running_balance=balance,
            has_discrepancy=differs(row.running_balance, balance),
            description=row.description,
            reference=row.reference,
        ))

    current = round_amount(account.current_balance)
    return AccountDiagnostics(
        account=DiagnosticAccount(
            id=account.id,
            account_code=account.account_code,
            account_name=account.account_name,
            account_type=account.account_type,
            opening_balance=round_amount(account.opening_balance),
            current_balance=current,
            calculated_balance=balance,
        ),
        entries=entries,
        entry_count=len(entries),
        has_discrepancy=differs(current, balance) or any(e.has_discrepancy for e in entries),
    )
