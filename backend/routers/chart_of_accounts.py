import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crud import chart_of_accounts as chart_of_accounts_crud
from crud import reconciliation as reconciliation_crud
from database import get_db
from errors import LedgerError
from schemas.chart_of_accounts import (
    ChartOfAccounts,
    ChartOfAccountsCreate,
    ChartOfAccountsUpdate,
    ChartOfAccountsUpdateResult,
)
from schemas.ledgers import AccountDiagnostics, RecalculationResult
from utils.http_errors import to_http_exception
from utils.tenancy import get_tenant_id, get_user_id

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/chart-of-accounts",
    tags=["Chart of Accounts"],
)

@router.post("/", response_model=ChartOfAccounts, status_code=status.HTTP_201_CREATED)
def create_account(
    account: ChartOfAccountsCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id)
):
    try:
        return chart_of_accounts_crud.create_account(db, tenant_id, account, user_id=user_id)
    except LedgerError as e:
        raise to_http_exception(e)

@router.get("/", response_model=List[ChartOfAccounts])
def get_accounts(
    account_type: Optional[str] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return chart_of_accounts_crud.list_accounts(
        db, tenant_id, account_type=account_type, include_inactive=include_inactive
    )

@router.post("/initialize", response_model=List[ChartOfAccounts])
def initialize_accounts(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id)
):
    """Seed the default chart of accounts. Returns only the accounts that were created."""
    try:
        return chart_of_accounts_crud.initialize_default_accounts(db, tenant_id, user_id=user_id)
    except LedgerError as e:
        raise to_http_exception(e)

@router.post("/recalculate-balances", response_model=RecalculationResult)
def recalculate_balances(
    account_id: Optional[int] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id)
):
    logger.info(f"Balance recalculation requested by {user_id} for tenant {tenant_id}")
    try:
        return reconciliation_crud.recalculate_account_balances(db, tenant_id, account_id=account_id)
    except LedgerError as e:
        raise to_http_exception(e)

@router.get("/{account_id}", response_model=ChartOfAccounts)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    account = chart_of_accounts_crud.get_account(db, tenant_id, account_id)
    if not account:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found")
    return account

@router.patch("/{account_id}", response_model=ChartOfAccountsUpdateResult)
def update_account(
    account_id: int,
    account_update: ChartOfAccountsUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id)
):
    try:
        return chart_of_accounts_crud.update_account(db, tenant_id, account_id, account_update, user_id=user_id)
    except LedgerError as e:
        raise to_http_exception(e)

@router.get("/{account_id}/diagnostics", response_model=AccountDiagnostics)
def get_account_diagnostics(
    account_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    try:
        return reconciliation_crud.get_account_diagnostics(db, tenant_id, account_id)
    except LedgerError as e:
        raise to_http_exception(e)
