from decimal import Decimal

from crud.chart_of_accounts import initialize_default_accounts
from models import GeneralLedger
from tasks.eod_tasks import run_eod_tasks
from tests.conftest import OTHER_TENANT, TENANT


def test_nightly_run_reconciles_every_tenant(db, book, accounts, session_factory):
    initialize_default_accounts(db, OTHER_TENANT)
    book([("1110", 100, 0), ("4100", 0, 100)])

    row = db.query(GeneralLedger).first()
    row.running_balance = Decimal("1.00")
    db.commit()

    results = run_eod_tasks(session_factory=session_factory)

    assert set(results) == {TENANT, OTHER_TENANT}
    assert results[TENANT].corrected_rows == 1
    assert results[OTHER_TENANT].updated_accounts == 0
    db.expire_all()
    assert db.query(GeneralLedger).first().running_balance == Decimal("100.00")


def test_nightly_run_with_no_tenants(session_factory):
    assert run_eod_tasks(session_factory=session_factory) == {}
