from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crud import general_ledger as general_ledger_crud
from database import get_db
from schemas.ledgers import GeneralLedgerEntry
from utils.tenancy import get_tenant_id

router = APIRouter(
    prefix="/general-ledger",
    tags=["General Ledger"],
)

@router.get("/", response_model=List[GeneralLedgerEntry])
def get_general_ledger(
    account_id: Optional[int] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    return general_ledger_crud.query_ledger(db, tenant_id, account_id=account_id, from_date=from_date, to_date=to_date)
