from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crud import postings as postings_crud
from database import get_db
from errors import LedgerError
from schemas.journal_entry import JournalEntry
from schemas.postings import ExpensePosting, InventoryAdjustmentPosting, InvoicePosting, SalePosting
from utils.http_errors import to_http_exception
from utils.tenancy import get_tenant_id

router = APIRouter(
    prefix="/postings",
    tags=["Postings"],
)

# Each endpoint returns the entry booked for the record, new or existing,
# and null when the record carries no amount to book.

@router.post("/invoices", response_model=Optional[JournalEntry])
def post_invoice(
    invoice: InvoicePosting,
    auto_post: bool = True,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    try:
        return postings_crud.post_from_invoice(db, tenant_id, invoice, auto_post=auto_post)
    except LedgerError as e:
        raise to_http_exception(e)


@router.post("/sales", response_model=Optional[JournalEntry])
def post_sale(
    sale: SalePosting,
    auto_post: bool = True,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    try:
        return postings_crud.post_from_sale(db, tenant_id, sale, auto_post=auto_post)
    except LedgerError as e:
        raise to_http_exception(e)


@router.post("/expenses", response_model=Optional[JournalEntry])
def post_expense(
    expense: ExpensePosting,
    auto_post: bool = True,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    try:
        return postings_crud.post_from_expense(db, tenant_id, expense, auto_post=auto_post)
    except LedgerError as e:
        raise to_http_exception(e)


@router.post("/inventory-adjustments", response_model=Optional[JournalEntry])
def post_inventory_adjustment(
    adjustment: InventoryAdjustmentPosting,
    auto_post: bool = True,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id)
):
    try:
        return postings_crud.post_from_inventory_adjustment(db, tenant_id, adjustment, auto_post=auto_post)
    except LedgerError as e:
        raise to_http_exception(e)
