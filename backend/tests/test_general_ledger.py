from datetime import date
from decimal import Decimal

from crud.chart_of_accounts import create_account
from crud.general_ledger import query_ledger
from schemas.chart_of_accounts import ChartOfAccountsCreate
from tests.conftest import OTHER_TENANT, TENANT


def test_running_balance_follows_the_normal_side(db, book, accounts):
    book([("1110", 100, 0), ("4100", 0, 100)], entry_date=date(2025, 1, 1))
    book([("5200", 30, 0), ("1110", 0, 30)], entry_date=date(2025, 1, 2))

    cash = [r.running_balance for r in query_ledger(db, TENANT, account_id=accounts["1110"].id)]
    revenue = [r.running_balance for r in query_ledger(db, TENANT, account_id=accounts["4100"].id)]

    assert cash == [Decimal("100.00"), Decimal("70.00")]
    assert revenue == [Decimal("100.00")]
    assert accounts["1110"].current_balance == Decimal("70.00")


def test_first_posting_starts_from_the_opening_balance(db, book, accounts):
    bank = create_account(db, TENANT, ChartOfAccountsCreate(
        account_code="1115", account_name="Petty Cash", account_type="Asset",
        parent_account_id=accounts["1000"].id, opening_balance="500",
    ))
    accounts["1115"] = bank

    book([("1115", 100, 0), ("3100", 0, 100)])

    rows = query_ledger(db, TENANT, account_id=bank.id)
    assert rows[0].running_balance == Decimal("600.00")
    assert bank.current_balance == Decimal("600.00")


def test_query_filters_and_summaries(db, book, accounts):
    book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2025, 1, 15))
    entry = book([("1110", 20, 0), ("4100", 0, 20)], entry_date=date(2025, 2, 15), reference="R-2")

    rows = query_ledger(db, TENANT, from_date=date(2025, 2, 1), to_date=date(2025, 2, 28))

    assert len(rows) == 2
    assert {r.journal_entry_id for r in rows} == {entry.id}
    assert rows[0].account.account_code == "1110"
    assert rows[0].journal_entry.entry_number == entry.entry_number
    assert rows[0].reference == "R-2"
    assert query_ledger(db, OTHER_TENANT) == []


def test_rows_are_ordered_by_date_then_insertion(db, book, accounts):
    book([("1110", 10, 0), ("4100", 0, 10)], entry_date=date(2025, 5, 1))
    book([("1110", 20, 0), ("4100", 0, 20)], entry_date=date(2025, 4, 1))

    dates = [r.entry_date for r in query_ledger(db, TENANT, account_id=accounts["1110"].id)]
    assert dates == [date(2025, 4, 1), date(2025, 5, 1)]
