from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crud import financial_reports as financial_reports_crud
from database import get_db
from schemas.financial_reports import BalanceSheet, ProfitAndLoss, TrialBalance
from utils.tenancy import get_tenant_id

router = APIRouter(
    prefix="/financial-reports",
    tags=["Financial Reports"],
)


def _check_range(from_date: Optional[date], to_date: Optional[date]):
    if from_date and to_date and from_date > to_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="from_date must not be after to_date")


@router.get("/trial-balance", response_model=TrialBalance)
def get_trial_balance(
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    _check_range(from_date, to_date)
    return financial_reports_crud.get_trial_balance(db, tenant_id, from_date, to_date)


@router.get("/profit-and-loss", response_model=ProfitAndLoss)
def get_profit_and_loss(
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    _check_range(from_date, to_date)
    return financial_reports_crud.get_profit_and_loss(db, tenant_id, from_date, to_date)


@router.get("/balance-sheet", response_model=BalanceSheet)
def get_balance_sheet(
    as_of_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return financial_reports_crud.get_balance_sheet(db, tenant_id, as_of_date)
