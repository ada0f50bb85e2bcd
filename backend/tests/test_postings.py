from datetime import date
from decimal import Decimal

import pytest

import crud.postings as postings_crud
from crud.chart_of_accounts import update_account
from crud.postings import post_from_expense, post_from_inventory_adjustment, post_from_invoice, post_from_sale
from errors import ErrorKind, LedgerStateError
from models import JournalEntry, JournalEntryStatus
from schemas.chart_of_accounts import ChartOfAccountsUpdate
from schemas.postings import ExpensePosting, InventoryAdjustmentPosting, InvoicePosting, SalePosting
from tests.conftest import OTHER_TENANT, TENANT


def _lines(entry):
    return [(item.account.account_code, item.debit, item.credit) for item in entry.items]


def _invoice(**overrides):
    data = dict(
        id=42, invoice_number="INV-0042", customer_name="Acme Ltd",
        issue_date=date(2025, 3, 5), total_with_vat=Decimal("118.00"), vat_amount=Decimal("18.00"),
    )
    data.update(overrides)
    return InvoicePosting(**data)


def test_invoice_books_receivable_revenue_and_vat(db, accounts):
    entry = post_from_invoice(db, TENANT, _invoice())

    assert entry.status == JournalEntryStatus.POSTED
    assert entry.created_by == "system"
    assert entry.description == "Invoice INV-0042 - Acme Ltd"
    assert entry.reference == "INV-0042"
    assert (entry.reference_type, entry.reference_id) == ("invoice", "42")
    assert _lines(entry) == [
        ("1120", Decimal("118.00"), Decimal("0.00")),
        ("4100", Decimal("0.00"), Decimal("100.00")),
        ("2120", Decimal("0.00"), Decimal("18.00")),
    ]
    assert accounts["1120"].current_balance == Decimal("118.00")


def test_invoice_posting_is_idempotent(db, accounts):
    first = post_from_invoice(db, TENANT, _invoice())
    second = post_from_invoice(db, TENANT, _invoice())

    assert first.id == second.id
    assert db.query(JournalEntry).count() == 1
    assert accounts["1120"].current_balance == Decimal("118.00")


def test_invoice_without_vat_has_two_lines(db, accounts):
    entry = post_from_invoice(db, TENANT, _invoice(total_with_vat=None, total=Decimal("50"), vat_amount=Decimal("0")))

    assert [code for code, _, _ in _lines(entry)] == ["1120", "4100"]


def test_zero_total_is_skipped(db, accounts):
    assert post_from_invoice(db, TENANT, _invoice(total_with_vat=Decimal("0"))) is None
    assert post_from_sale(db, TENANT, SalePosting(id=1, total_sales=Decimal("-5"))) is None
    assert post_from_expense(db, TENANT, ExpensePosting(id=1, category="Rent")) is None
    assert db.query(JournalEntry).count() == 0


def test_sale_debits_cash(db, accounts):
    entry = post_from_sale(db, TENANT, SalePosting(
        id=7, sale_date=date(2025, 4, 1), total_sales=Decimal("230.00"), total_vat=Decimal("30.00"), summary="Counter sale",
    ))

    assert entry.reference == "SALE-7"
    assert entry.description == "Sale 7 - Counter sale"
    assert _lines(entry)[0] == ("1110", Decimal("230.00"), Decimal("0.00"))
    assert accounts["4100"].current_balance == Decimal("200.00")
    assert accounts["2120"].current_balance == Decimal("30.00")


def test_expense_books_gross_amount(db, accounts):
    entry = post_from_expense(db, TENANT, ExpensePosting(
        id=3, category="Utilities", description="Power bill", expense_date=date(2025, 4, 2),
        amount=Decimal("100.00"), vat_amount=Decimal("5.00"),
    ))

    assert entry.reference == "EXP-3"
    assert _lines(entry) == [
        ("5200", Decimal("105.00"), Decimal("0.00")),
        ("2110", Decimal("0.00"), Decimal("105.00")),
    ]


def test_stock_increase_is_a_purchase_on_account(db, accounts):
    entry = post_from_inventory_adjustment(db, TENANT, InventoryAdjustmentPosting(
        id=11, item_id=5, item_name="Widget", cost_price=Decimal("2.50"), old_stock=Decimal("4"), new_stock=Decimal("14"),
    ))

    assert entry.description == "Inventory Purchase: Widget"
    assert _lines(entry) == [
        ("1130", Decimal("25.00"), Decimal("0.00")),
        ("2110", Decimal("0.00"), Decimal("25.00")),
    ]


def test_stock_decrease_goes_to_cost_of_goods_sold(db, accounts):
    entry = post_from_inventory_adjustment(db, TENANT, InventoryAdjustmentPosting(
        id=12, item_name="Widget", cost_price=Decimal("2.50"), old_stock=Decimal("14"), new_stock=Decimal("10"),
    ))

    assert _lines(entry) == [
        ("5100", Decimal("10.00"), Decimal("0.00")),
        ("1130", Decimal("0.00"), Decimal("10.00")),
    ]


def test_stock_decrease_without_cogs_account_uses_operating_expenses(db, accounts):
    update_account(db, TENANT, accounts["5100"].id, ChartOfAccountsUpdate(account_code="5199"))

    entry = post_from_inventory_adjustment(db, TENANT, InventoryAdjustmentPosting(
        id=13, item_name="Widget", cost_price=Decimal("1"), old_stock=Decimal("3"), new_stock=Decimal("1"),
    ))

    assert _lines(entry)[0][0] == "5200"


def test_missing_fixed_account_is_reported(db, accounts):
    with pytest.raises(LedgerStateError) as exc:
        post_from_invoice(db, OTHER_TENANT, _invoice())

    assert exc.value.kind == ErrorKind.MISSING_ACCOUNT
    assert "1120" in exc.value.message
    assert db.query(JournalEntry).count() == 0


def test_losing_a_concurrent_race_returns_the_winner(db, accounts, monkeypatch):
    winner = post_from_invoice(db, TENANT, _invoice())
    real = postings_crud.get_entry_by_reference
    calls = []

    def blind_first_lookup(*args):
        calls.append(args)
        # The first check runs before the other worker's insert is visible.
        return None if len(calls) == 1 else real(*args)

    monkeypatch.setattr(postings_crud, "get_entry_by_reference", blind_first_lookup)
    result = post_from_invoice(db, TENANT, _invoice())

    assert result.id == winner.id
    assert db.query(JournalEntry).count() == 1
    assert accounts["1120"].current_balance == Decimal("118.00")
