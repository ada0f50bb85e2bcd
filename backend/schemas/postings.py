from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import Optional

# Domain records handed to the posting adapters. Only the fields the
# ledger needs are modelled; the owning modules keep the rest.

class InvoicePosting(BaseModel):
    id: int
    invoice_number: str
    customer_name: Optional[str] = None
    issue_date: Optional[date] = None
    total: Optional[Decimal] = None
    total_with_vat: Optional[Decimal] = None
    vat_amount: Decimal = Decimal("0")

class SalePosting(BaseModel):
    id: int
    sale_date: Optional[date] = None
    total_sales: Decimal = Decimal("0")
    total_vat: Decimal = Decimal("0")
    summary: Optional[str] = None

class ExpensePosting(BaseModel):
    id: int
    category: str
    description: Optional[str] = None
    expense_date: Optional[date] = None
    amount: Decimal = Decimal("0")
    vat_amount: Decimal = Decimal("0")

class InventoryAdjustmentPosting(BaseModel):
    id: int  # stock movement id; one entry per movement
    item_id: Optional[int] = None
    item_name: str
    cost_price: Decimal
    old_stock: Decimal = Decimal("0")
    new_stock: Decimal = Decimal("0")
    movement_date: Optional[date] = None
