import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from errors import ErrorKind, LedgerPersistenceError, LedgerStateError, LedgerValidationError
from models.chart_of_accounts import ChartOfAccounts
from models.journal_item import JournalItem
from schemas.audit_log import AuditLogCreate
from schemas.chart_of_accounts import ChartOfAccountsCreate, ChartOfAccountsUpdate, ChartOfAccountsUpdateResult
from utils import round_amount, differs, sqlalchemy_to_dict

logger = logging.getLogger(__name__)

# Well-known chart seeded for every tenant. The posting adapters depend on the
# leaf codes; the four-digit "x000" rows are grouping parents.
DEFAULT_ACCOUNTS = [
    {"account_code": "1000", "account_name": "Assets", "account_type": "Asset", "parent": None},
    {"account_code": "1110", "account_name": "Cash and Bank", "account_type": "Asset", "parent": "1000"},
    {"account_code": "1120", "account_name": "Accounts Receivable", "account_type": "Asset", "parent": "1000"},
    {"account_code": "1130", "account_name": "Inventory", "account_type": "Asset", "parent": "1000"},
    {"account_code": "2000", "account_name": "Liabilities", "account_type": "Liability", "parent": None},
    {"account_code": "2110", "account_name": "Accounts Payable", "account_type": "Liability", "parent": "2000"},
    {"account_code": "2120", "account_name": "VAT Payable", "account_type": "Liability", "parent": "2000"},
    {"account_code": "3000", "account_name": "Equity", "account_type": "Equity", "parent": None},
    {"account_code": "3100", "account_name": "Owner's Equity", "account_type": "Equity", "parent": "3000"},
    {"account_code": "4000", "account_name": "Revenue", "account_type": "Revenue", "parent": None},
    {"account_code": "4100", "account_name": "Sales Revenue", "account_type": "Revenue", "parent": "4000"},
    {"account_code": "5000", "account_name": "Expenses", "account_type": "Expense", "parent": None},
    {"account_code": "5100", "account_name": "Cost of Goods Sold", "account_type": "Expense", "parent": "5000"},
    {"account_code": "5200", "account_name": "Operating Expenses", "account_type": "Expense", "parent": "5000"},
]


def get_account(db: Session, tenant_id: str, account_id: int) -> Optional[ChartOfAccounts]:
    return db.query(ChartOfAccounts).filter(
        ChartOfAccounts.id == account_id,
        ChartOfAccounts.tenant_id == tenant_id
    ).first()

def get_account_by_code(db: Session, tenant_id: str, account_code: str) -> Optional[ChartOfAccounts]:
    return db.query(ChartOfAccounts).filter(
        ChartOfAccounts.account_code == account_code,
        ChartOfAccounts.tenant_id == tenant_id
    ).first()

def require_account(db: Session, tenant_id: str, account_id: int) -> ChartOfAccounts:
    account = get_account(db, tenant_id, account_id)
    if not account:
        raise LedgerStateError(f"Account with id {account_id} not found", ErrorKind.ACCOUNT_NOT_FOUND)
    return account

def list_accounts(
    db: Session,
    tenant_id: str,
    account_type: Optional[str] = None,
    include_inactive: bool = False
) -> List[ChartOfAccounts]:
    query = db.query(ChartOfAccounts).filter(ChartOfAccounts.tenant_id == tenant_id)

    if account_type:
        query = query.filter(ChartOfAccounts.account_type == account_type)
    if not include_inactive:
        query = query.filter(ChartOfAccounts.is_active.is_(True))

    return query.order_by(ChartOfAccounts.account_code).all()


def _is_in_use(db: Session, tenant_id: str, account_id: int) -> bool:
    return db.query(JournalItem.id).filter(
        JournalItem.account_id == account_id,
        JournalItem.tenant_id == tenant_id
    ).first() is not None


def _check_parent(db: Session, tenant_id: str, account_id: Optional[int], parent_account_id: Optional[int]):
    """Parent must live in the same tenant and must not sit below the account itself."""
    if parent_account_id is None:
        return

    parent = get_account(db, tenant_id, parent_account_id)
    if not parent:
        raise LedgerValidationError(
            f"Parent account with id {parent_account_id} not found", ErrorKind.INVALID_ACCOUNT
        )
    if account_id is None:
        return

    # Walk up from the proposed parent; reaching the account means a cycle.
    seen = set()
    current = parent
    while current is not None:
        if current.id == account_id:
            raise LedgerValidationError(
                f"Account {account_id} cannot be placed under {parent_account_id}: "
                "the hierarchy would contain a cycle",
                ErrorKind.INVALID_ACCOUNT,
            )
        if current.id in seen:
            # A pre-existing loop above us; refuse to extend it.
            raise LedgerValidationError(
                f"Parent chain of account {parent_account_id} already contains a cycle",
                ErrorKind.INVALID_ACCOUNT,
            )
        seen.add(current.id)
        current = get_account(db, tenant_id, current.parent_account_id) if current.parent_account_id else None


def create_account(db: Session, tenant_id: str, account: ChartOfAccountsCreate, user_id: str = "system") -> ChartOfAccounts:
    if get_account_by_code(db, tenant_id, account.account_code):
        raise LedgerValidationError(
            f"Account code {account.account_code} already exists", ErrorKind.DUPLICATE_ACCOUNT_CODE
        )
    _check_parent(db, tenant_id, None, account.parent_account_id)

    opening_balance = round_amount(account.opening_balance)
    db_account = ChartOfAccounts(
        **account.model_dump(exclude={"opening_balance"}),
        opening_balance=opening_balance,
        current_balance=opening_balance,
        tenant_id=tenant_id,
        created_by=user_id,
    )
    db.add(db_account)
    try:
        db.flush()
        create_audit_log(db, AuditLogCreate(
            tenant_id=tenant_id,
            table_name='chart_of_accounts',
            record_id=db_account.id,
            changed_by=user_id,
            action='CREATE',
            old_values={},
            new_values=sqlalchemy_to_dict(db_account)
        ), commit=False)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise LedgerValidationError(
            f"Account code {account.account_code} already exists", ErrorKind.DUPLICATE_ACCOUNT_CODE
        )
    except SQLAlchemyError as e:
        db.rollback()
        raise LedgerPersistenceError(f"Failed to create account {account.account_code}: {e}")

    db.refresh(db_account)
    logger.info(f"Account {db_account.account_code} '{db_account.account_name}' created by {user_id} for tenant {tenant_id}")
    return db_account


def update_account(
    db: Session,
    tenant_id: str,
    account_id: int,
    account_update: ChartOfAccountsUpdate,
    user_id: str = "system"
) -> ChartOfAccountsUpdateResult:
    """
    Apply a partial update to an account.

    Changing the opening balance does not touch ledger rows directly; instead a
    recalculation scoped to this account runs right after the update commits,
    so the stored running balances and current balance follow the new opening
    figure. The recalculation summary is returned alongside the account.
    """
    from crud.reconciliation import recalculate_account_balances

    db_account = require_account(db, tenant_id, account_id)
    update_data = {
        key: value for key, value in account_update.model_dump(exclude_unset=True).items()
        if value is not None or key in ('parent_account_id', 'description')
    }

    new_code = update_data.get('account_code')
    if new_code and new_code != db_account.account_code:
        existing = get_account_by_code(db, tenant_id, new_code)
        if existing and existing.id != account_id:
            raise LedgerValidationError(f"Account code {new_code} already exists", ErrorKind.DUPLICATE_ACCOUNT_CODE)

    if 'parent_account_id' in update_data:
        _check_parent(db, tenant_id, account_id, update_data['parent_account_id'])

    changing_type = 'account_type' in update_data and update_data['account_type'] != db_account.account_type
    deactivating = update_data.get('is_active') is False and db_account.is_active
    if (changing_type or deactivating) and _is_in_use(db, tenant_id, account_id):
        action = "change the type of" if changing_type else "deactivate"
        raise LedgerValidationError(
            f"Cannot {action} account {db_account.account_code} because it is referenced by journal items.",
            ErrorKind.INVALID_ACCOUNT,
        )

    opening_balance_changed = False
    if 'opening_balance' in update_data:
        new_opening = round_amount(update_data['opening_balance'])
        opening_balance_changed = differs(new_opening, db_account.opening_balance)
        update_data['opening_balance'] = new_opening

    old_values = sqlalchemy_to_dict(db_account)
    for key, value in update_data.items():
        setattr(db_account, key, value)
    db_account.updated_by = user_id

    try:
        db.flush()
        create_audit_log(db, AuditLogCreate(
            tenant_id=tenant_id,
            table_name='chart_of_accounts',
            record_id=db_account.id,
            changed_by=user_id,
            action='UPDATE',
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_account)
        ), commit=False)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise LedgerValidationError(
            f"Account code {update_data.get('account_code')} already exists", ErrorKind.DUPLICATE_ACCOUNT_CODE
        )
    except SQLAlchemyError as e:
        db.rollback()
        raise LedgerPersistenceError(f"Failed to update account {account_id}: {e}")

    db.refresh(db_account)
    logger.info(f"Account {db_account.account_code} (ID: {account_id}) updated by {user_id} for tenant {tenant_id}")

    recalculation = None
    message = None
    if opening_balance_changed:
        logger.info(f"Opening balance of account {db_account.account_code} changed; recalculating its ledger")
        recalculation = recalculate_account_balances(db, tenant_id, account_id=account_id)
        if recalculation.errors:
            logger.warning(f"Recalculation after opening balance change failed for account {db_account.account_code}: {recalculation.errors[0].error}")
            message = "Opening balance updated, but the balance recalculation failed. Run 'Recalculate Balances' again."
        else:
            message = "Opening balance updated and ledger running balances recalculated."
        db.refresh(db_account)

    result = ChartOfAccountsUpdateResult.model_validate(db_account)
    return result.model_copy(update={
        "opening_balance_changed": opening_balance_changed,
        "message": message,
        "recalculation": recalculation,
    })


def initialize_default_accounts(db: Session, tenant_id: str, user_id: str = "system") -> List[ChartOfAccounts]:
    """Seed the default chart of accounts for a tenant. Existing codes are left alone."""
    created = []
    for account_data in DEFAULT_ACCOUNTS:
        if get_account_by_code(db, tenant_id, account_data["account_code"]):
            continue
        parent_id = None
        if account_data["parent"]:
            parent = get_account_by_code(db, tenant_id, account_data["parent"])
            parent_id = parent.id if parent else None
        payload = {k: v for k, v in account_data.items() if k != "parent"}
        created.append(create_account(
            db,
            tenant_id,
            ChartOfAccountsCreate(**payload, parent_account_id=parent_id, description=f"Default {account_data['account_name']} account"),
            user_id=user_id,
        ))

    if created:
        logger.info(f"Seeded {len(created)} default accounts for tenant {tenant_id}")
    return created
