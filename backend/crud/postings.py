import logging
from datetime import date
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from crud.chart_of_accounts import get_account_by_code
from crud.journal_entry import create_journal_entry, get_entry_by_reference
from errors import ErrorKind, LedgerStateError
from models.chart_of_accounts import ChartOfAccounts
from models.journal_entry import JournalEntry
from schemas.journal_entry import JournalEntryCreate
from schemas.journal_item import JournalItemCreate
from schemas.postings import ExpensePosting, InventoryAdjustmentPosting, InvoicePosting, SalePosting
from utils.money import ZERO, round_amount

logger = logging.getLogger(__name__)

SYSTEM_USER = "system"

DEFAULT_ACCOUNT_CODES = {
    "cash": "1110",
    "accounts_receivable": "1120",
    "inventory": "1130",
    "accounts_payable": "2110",
    "vat_payable": "2120",
    "sales_revenue": "4100",
    "cost_of_goods_sold": "5100",
    "operating_expenses": "5200",
}


def _resolve(db: Session, tenant_id: str, key: str) -> ChartOfAccounts:
    code = DEFAULT_ACCOUNT_CODES[key]
    account = get_account_by_code(db, tenant_id, code)
    if not account:
        logger.error(f"Account {code} ({key}) not found for tenant {tenant_id}. Initialize the chart of accounts first.")
        raise LedgerStateError(
            f"Account {code} ({key.replace('_', ' ')}) not found in chart of accounts", ErrorKind.MISSING_ACCOUNT
        )
    return account


def _line(account: ChartOfAccounts, debit=ZERO, credit=ZERO, description: str = None) -> JournalItemCreate:
    return JournalItemCreate(
        account_id=account.id,
        debit=round_amount(debit),
        credit=round_amount(credit),
        description=description,
    )


def _post_document(
    db: Session,
    tenant_id: str,
    reference_type: str,
    reference_id,
    build_entry: Callable[[], JournalEntryCreate],
    auto_post: bool,
) -> JournalEntry:
    """Create (and optionally post) the entry for one domain record, at most once."""
    existing = get_entry_by_reference(db, tenant_id, reference_type, reference_id)
    if existing:
        logger.info(f"Journal entry {existing.entry_number} already exists for {reference_type} {reference_id}")
        return existing

    entry = build_entry()
    try:
        return create_journal_entry(db, tenant_id, entry, created_by=SYSTEM_USER, post=auto_post)
    except LedgerStateError as e:
        # Another worker booked the same record between our check and insert.
        if e.kind != ErrorKind.DUPLICATE_REFERENCE:
            raise
        existing = get_entry_by_reference(db, tenant_id, reference_type, reference_id)
        if existing:
            logger.info(f"Concurrent posting for {reference_type} {reference_id} resolved to {existing.entry_number}")
            return existing
        raise


def _revenue_lines(db, tenant_id, debit_key, total, vat, label) -> List[JournalItemCreate]:
    debit_account = _resolve(db, tenant_id, debit_key)
    sales_account = _resolve(db, tenant_id, "sales_revenue")
    lines = [
        _line(debit_account, debit=total, description=label),
        _line(sales_account, credit=total - vat, description=f"Sales from {label.lower()}"),
    ]
    if vat > ZERO:
        vat_account = _resolve(db, tenant_id, "vat_payable")
        lines.append(_line(vat_account, credit=vat, description=f"VAT from {label.lower()}"))
    return lines


def post_from_invoice(db: Session, tenant_id: str, invoice: InvoicePosting, auto_post: bool = True) -> Optional[JournalEntry]:
    """Dr Accounts Receivable, Cr Sales Revenue and VAT Payable."""
    total = round_amount(invoice.total_with_vat if invoice.total_with_vat is not None else invoice.total)
    vat = round_amount(invoice.vat_amount)
    if total <= ZERO:
        logger.warning(f"Invoice {invoice.invoice_number} has total {total}; no journal entry created")
        return None

    def build():
        label = f"Invoice {invoice.invoice_number}"
        description = f"{label} - {invoice.customer_name}" if invoice.customer_name else label
        return JournalEntryCreate(
            entry_date=invoice.issue_date or date.today(),
            description=description,
            reference=invoice.invoice_number,
            reference_type="invoice",
            reference_id=invoice.id,
            items=_revenue_lines(db, tenant_id, "accounts_receivable", total, vat, label),
        )

    return _post_document(db, tenant_id, "invoice", invoice.id, build, auto_post)


def post_from_sale(db: Session, tenant_id: str, sale: SalePosting, auto_post: bool = True) -> Optional[JournalEntry]:
    """Cash sale: Dr Cash and Bank, Cr Sales Revenue and VAT Payable."""
    total = round_amount(sale.total_sales)
    vat = round_amount(sale.total_vat)
    if total <= ZERO:
        logger.warning(f"Sale {sale.id} has total {total}; no journal entry created")
        return None

    def build():
        label = f"Sale {sale.id}"
        return JournalEntryCreate(
            entry_date=sale.sale_date or date.today(),
            description=f"{label} - {sale.summary}" if sale.summary else label,
            reference=f"SALE-{sale.id}",
            reference_type="sale",
            reference_id=sale.id,
            items=_revenue_lines(db, tenant_id, "cash", total, vat, label),
        )

    return _post_document(db, tenant_id, "sale", sale.id, build, auto_post)


def post_from_expense(db: Session, tenant_id: str, expense: ExpensePosting, auto_post: bool = True) -> Optional[JournalEntry]:
    """Dr Operating Expenses, Cr Accounts Payable for the gross amount."""
    total = round_amount(round_amount(expense.amount) + round_amount(expense.vat_amount))
    if total <= ZERO:
        logger.warning(f"Expense {expense.id} has total {total}; no journal entry created")
        return None

    def build():
        expense_account = _resolve(db, tenant_id, "operating_expenses")
        payable_account = _resolve(db, tenant_id, "accounts_payable")
        detail = expense.description or expense.category
        return JournalEntryCreate(
            entry_date=expense.expense_date or date.today(),
            description=f"Expense: {expense.category} - {detail}",
            reference=f"EXP-{expense.id}",
            reference_type="expense",
            reference_id=expense.id,
            items=[
                _line(expense_account, debit=total, description=f"{expense.category} - {detail}"),
                _line(payable_account, credit=total, description=f"Expense {expense.category}"),
            ],
        )

    return _post_document(db, tenant_id, "expense", expense.id, build, auto_post)


def post_from_inventory_adjustment(
    db: Session,
    tenant_id: str,
    adjustment: InventoryAdjustmentPosting,
    auto_post: bool = True
) -> Optional[JournalEntry]:
    """
    Book a stock movement at cost.

    An increase is a purchase on account (Dr Inventory, Cr Accounts Payable).
    A decrease is consumption (Dr Cost of Goods Sold, Cr Inventory); tenants
    without a COGS account get the write-off on Operating Expenses instead.
    """
    change = adjustment.new_stock - adjustment.old_stock
    value = round_amount(abs(change) * adjustment.cost_price)
    if value <= ZERO:
        logger.warning(f"Stock movement {adjustment.id} for {adjustment.item_name} has no value; no journal entry created")
        return None

    def build():
        inventory_account = _resolve(db, tenant_id, "inventory")
        if change > 0:
            payable_account = _resolve(db, tenant_id, "accounts_payable")
            kind = "Purchase"
            items = [
                _line(inventory_account, debit=value, description=f"Inventory purchase: {adjustment.item_name} (+{change} units)"),
                _line(payable_account, credit=value, description=f"Purchase of {adjustment.item_name}"),
            ]
        else:
            kind = "Adjustment"
            cogs_code = DEFAULT_ACCOUNT_CODES["cost_of_goods_sold"]
            expense_account = get_account_by_code(db, tenant_id, cogs_code)
            if expense_account:
                label = f"COGS: {adjustment.item_name}"
            else:
                logger.warning(f"Account {cogs_code} missing for tenant {tenant_id}; writing off to operating expenses")
                expense_account = _resolve(db, tenant_id, "operating_expenses")
                label = f"Inventory write-off: {adjustment.item_name}"
            items = [
                _line(expense_account, debit=value, description=label),
                _line(inventory_account, credit=value, description=f"Inventory decrease: {adjustment.item_name} ({change} units)"),
            ]
        return JournalEntryCreate(
            entry_date=adjustment.movement_date or date.today(),
            description=f"Inventory {kind}: {adjustment.item_name}",
            reference=f"INV-{adjustment.item_id or adjustment.id}",
            reference_type="inventory_adjustment",
            reference_id=adjustment.id,
            items=items,
        )

    return _post_document(db, tenant_id, "inventory_adjustment", adjustment.id, build, auto_post)
