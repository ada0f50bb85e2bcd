import threading
from decimal import Decimal

import pytest

import crud.reconciliation as reconciliation_crud
from crud.chart_of_accounts import update_account
from crud.reconciliation import get_account_diagnostics, recalculate_account_balances
from errors import ErrorKind, LedgerStateError
from models import GeneralLedger
from schemas.chart_of_accounts import ChartOfAccountsUpdate
from tests.conftest import TENANT


def _corrupt(db, accounts):
    """Scribble over a stored running balance and the cached account balance."""
    row = (
        db.query(GeneralLedger)
        .filter(GeneralLedger.account_id == accounts["1110"].id)
        .order_by(GeneralLedger.id)
        .first()
    )
    row.running_balance = Decimal("999.00")
    accounts["1110"].current_balance = Decimal("0.00")
    db.commit()
    return row.id


@pytest.fixture
def posted(book):
    book([("1110", 100, 0), ("4100", 0, 100)])
    book([("5200", 40, 0), ("1110", 0, 40)])


def test_clean_ledger_needs_no_changes(db, accounts, posted):
    result = recalculate_account_balances(db, TENANT)

    assert result.total_accounts == len(accounts)
    assert result.processed_accounts == len(accounts)
    assert result.updated_accounts == 0
    assert result.corrected_rows == 0
    assert result.discrepancies == []
    assert result.errors == []


def test_corruption_is_detected_and_repaired(db, accounts, posted):
    row_id = _corrupt(db, accounts)

    result = recalculate_account_balances(db, TENANT)

    assert result.updated_accounts == 1
    assert result.corrected_rows == 1
    [discrepancy] = result.discrepancies
    assert discrepancy.account_code == "1110"
    assert discrepancy.current_balance == Decimal("0.00")
    assert discrepancy.calculated_balance == Decimal("60.00")
    assert discrepancy.difference == Decimal("60.00")
    assert db.get(GeneralLedger, row_id).running_balance == Decimal("100.00")
    assert accounts["1110"].current_balance == Decimal("60.00")


def test_second_run_is_a_no_op(db, accounts, posted):
    _corrupt(db, accounts)
    recalculate_account_balances(db, TENANT)

    again = recalculate_account_balances(db, TENANT)

    assert again.updated_accounts == 0
    assert again.corrected_rows == 0
    assert again.discrepancies == []


def test_failure_on_one_account_does_not_stop_the_run(db, accounts, posted, monkeypatch):
    _corrupt(db, accounts)
    real = reconciliation_crud._recalculate_account

    def flaky(db, account, result):
        if account.account_code == "4100":
            raise RuntimeError("disk on fire")
        return real(db, account, result)

    monkeypatch.setattr(reconciliation_crud, "_recalculate_account", flaky)
    result = recalculate_account_balances(db, TENANT)

    assert [e.account_code for e in result.errors] == ["4100"]
    assert "disk on fire" in result.errors[0].error
    assert result.processed_accounts == len(accounts)
    # The corrupted cash account was still repaired.
    assert accounts["1110"].current_balance == Decimal("60.00")


def test_cancel_stops_before_the_next_account(db, accounts, posted):
    cancel = threading.Event()
    cancel.set()

    result = recalculate_account_balances(db, TENANT, cancel_event=cancel)

    assert result.cancelled is True
    assert result.processed_accounts == 0


def test_scoped_to_one_account(db, accounts, posted):
    _corrupt(db, accounts)

    result = recalculate_account_balances(db, TENANT, account_id=accounts["1110"].id)

    assert result.total_accounts == 1
    assert result.updated_accounts == 1

    with pytest.raises(LedgerStateError) as exc:
        recalculate_account_balances(db, TENANT, account_id=9999)
    assert exc.value.kind == ErrorKind.ACCOUNT_NOT_FOUND


def test_diagnostics_compare_stored_and_replayed_balances(db, accounts, posted):
    row_id = _corrupt(db, accounts)

    report = get_account_diagnostics(db, TENANT, accounts["1110"].id)

    assert report.has_discrepancy is True
    assert report.entry_count == 2
    assert report.account.current_balance == Decimal("0.00")
    assert report.account.calculated_balance == Decimal("60.00")
    first, second = report.entries
    assert first.id == row_id
    assert first.stored_running_balance == Decimal("999.00")
    assert first.calculated_running_balance == Decimal("100.00")
    assert first.has_discrepancy is True
    assert second.has_discrepancy is False
    assert first.journal_entry_number.startswith("JE-")


def test_opening_balance_edit_recalculates_the_account(db, accounts, posted):
    result = update_account(
        db, TENANT, accounts["1110"].id, ChartOfAccountsUpdate(opening_balance="1000"), user_id="editor"
    )

    assert result.opening_balance_changed is True
    assert result.recalculation is not None
    assert result.recalculation.corrected_rows == 2
    assert result.current_balance == Decimal("1060.00")
    rows = db.query(GeneralLedger).filter(GeneralLedger.account_id == accounts["1110"].id).order_by(GeneralLedger.id).all()
    assert [r.running_balance for r in rows] == [Decimal("1100.00"), Decimal("1060.00")]


def test_unchanged_opening_balance_skips_recalculation(db, accounts, posted):
    result = update_account(db, TENANT, accounts["1110"].id, ChartOfAccountsUpdate(account_name="Cash at Bank"))

    assert result.opening_balance_changed is False
    assert result.recalculation is None
    assert result.account_name == "Cash at Bank"


def test_null_opening_balance_on_update_leaves_it_alone(db, accounts, posted):
    update_account(db, TENANT, accounts["1110"].id, ChartOfAccountsUpdate(opening_balance="500"))

    result = update_account(
        db, TENANT, accounts["1110"].id, ChartOfAccountsUpdate(account_name="Cash", opening_balance=None)
    )

    assert result.opening_balance == Decimal("500.00")
    assert result.opening_balance_changed is False
    assert result.recalculation is None
    assert result.current_balance == Decimal("560.00")
    assert result.account_name == "Cash"


def test_failed_commit_reports_no_discrepancy(db, accounts, posted, monkeypatch):
    _corrupt(db, accounts)

    def failing_commit():
        raise RuntimeError("connection lost")

    monkeypatch.setattr(db, "commit", failing_commit)
    result = recalculate_account_balances(db, TENANT, account_id=accounts["1110"].id)
    monkeypatch.undo()

    assert [e.account_code for e in result.errors] == ["1110"]
    assert result.discrepancies == []
    assert result.corrected_rows == 0
    assert result.updated_accounts == 0
    # The rollback left the corrupted figures in place.
    assert accounts["1110"].current_balance == Decimal("0.00")
