from decimal import Decimal

import pytest

HEADERS = {"X-Tenant-ID": "tenant-a", "X-User-ID": "clerk"}


@pytest.fixture
def chart(client):
    response = client.post("/chart-of-accounts/initialize", headers=HEADERS)
    assert response.status_code == 200
    return {a["account_code"]: a["id"] for a in response.json()}


def _entry(chart, debit_code="1110", credit_code="4100", debit="100.00", credit="100.00", **extra):
    payload = {
        "entry_date": "2025-03-01",
        "description": "Cash sale",
        "items": [
            {"account_id": chart[debit_code], "debit": debit},
            {"account_id": chart[credit_code], "credit": credit},
        ],
    }
    payload.update(extra)
    return payload


def test_tenant_header_is_required(client):
    assert client.get("/chart-of-accounts/").status_code == 422
    assert client.get("/chart-of-accounts/", headers={"X-Tenant-ID": "  "}).status_code == 400


def test_initialize_is_idempotent(client, chart):
    assert len(chart) == 14
    assert client.post("/chart-of-accounts/initialize", headers=HEADERS).json() == []
    listed = client.get("/chart-of-accounts/", headers=HEADERS).json()
    assert [a["account_code"] for a in listed][:3] == ["1000", "1110", "1120"]


def test_create_account_and_duplicate(client, chart):
    body = {"account_code": "1140", "account_name": "Prepaid", "account_type": "Asset", "opening_balance": "12.5"}

    created = client.post("/chart-of-accounts/", json=body, headers=HEADERS)
    assert created.status_code == 201
    assert Decimal(created.json()["current_balance"]) == Decimal("12.50")

    duplicate = client.post("/chart-of-accounts/", json=body, headers=HEADERS)
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"]["kind"] == "DuplicateAccountCode"


def test_entry_lifecycle(client, chart):
    created = client.post("/journal-entries/", json=_entry(chart), headers=HEADERS)
    assert created.status_code == 201
    entry = created.json()
    assert entry["status"] == "draft"
    assert entry["entry_number"] == "JE-2025-0001"
    assert entry["created_by"] == "clerk"

    posted = client.post(f"/journal-entries/{entry['id']}/post", headers=HEADERS)
    assert posted.status_code == 200
    assert posted.json()["status"] == "posted"
    assert posted.json()["posted_by"] == "clerk"

    again = client.post(f"/journal-entries/{entry['id']}/post", headers=HEADERS)
    assert again.status_code == 409
    assert again.json()["detail"]["kind"] == "InvalidState"

    listed = client.get("/journal-entries/", params={"status": "posted"}, headers=HEADERS).json()
    assert listed["total"] == 1
    assert listed["entries"][0]["id"] == entry["id"]


def test_unbalanced_entry_is_a_bad_request(client, chart):
    response = client.post("/journal-entries/", json=_entry(chart, debit="300", credit="250"), headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "UnbalancedEntry"
    assert client.get("/journal-entries/", headers=HEADERS).json()["total"] == 0


def test_duplicate_reference_is_a_conflict(client, chart):
    payload = _entry(chart, reference_type="invoice", reference_id="7")
    assert client.post("/journal-entries/", json=payload, headers=HEADERS).status_code == 201

    response = client.post("/journal-entries/", json=payload, headers=HEADERS)

    assert response.status_code == 409
    assert response.json()["detail"]["kind"] == "DuplicateReference"
    assert client.get("/journal-entries/", headers=HEADERS).json()["total"] == 1


def test_not_found_responses(client, chart):
    assert client.get("/journal-entries/9999", headers=HEADERS).status_code == 404
    assert client.post("/journal-entries/9999/post", headers=HEADERS).status_code == 404
    assert client.get("/chart-of-accounts/9999", headers=HEADERS).status_code == 404
    assert client.get("/chart-of-accounts/9999/diagnostics", headers=HEADERS).status_code == 404


def test_ledger_and_reports(client, chart):
    entry = client.post("/journal-entries/", json=_entry(chart), headers=HEADERS).json()
    client.post(f"/journal-entries/{entry['id']}/post", headers=HEADERS)

    rows = client.get("/general-ledger/", params={"account_id": chart["1110"]}, headers=HEADERS).json()
    assert len(rows) == 1
    assert Decimal(rows[0]["running_balance"]) == Decimal("100.00")
    assert rows[0]["account"]["account_code"] == "1110"
    assert rows[0]["journal_entry"]["entry_number"] == "JE-2025-0001"

    trial = client.get("/financial-reports/trial-balance", headers=HEADERS).json()
    assert trial["is_balanced"] is True

    pnl = client.get(
        "/financial-reports/profit-and-loss",
        params={"from_date": "2025-01-01", "to_date": "2025-12-31"},
        headers=HEADERS,
    ).json()
    assert Decimal(pnl["net_income"]) == Decimal("100.00")

    sheet = client.get("/financial-reports/balance-sheet", params={"as_of_date": "2025-06-30"}, headers=HEADERS).json()
    assert sheet["is_balanced"] is True

    bad_range = client.get(
        "/financial-reports/trial-balance",
        params={"from_date": "2025-12-31", "to_date": "2025-01-01"},
        headers=HEADERS,
    )
    assert bad_range.status_code == 400


def test_recalculate_and_diagnostics(client, chart):
    entry = client.post("/journal-entries/", json=_entry(chart), headers=HEADERS).json()
    client.post(f"/journal-entries/{entry['id']}/post", headers=HEADERS)

    result = client.post("/chart-of-accounts/recalculate-balances", headers=HEADERS).json()
    assert result["total_accounts"] == 14
    assert result["discrepancies"] == []

    report = client.get(f"/chart-of-accounts/{chart['1110']}/diagnostics", headers=HEADERS).json()
    assert report["entry_count"] == 1
    assert report["has_discrepancy"] is False


def test_opening_balance_patch_reports_recalculation(client, chart):
    response = client.patch(f"/chart-of-accounts/{chart['1110']}", json={"opening_balance": "75"}, headers=HEADERS)

    body = response.json()
    assert response.status_code == 200
    assert body["opening_balance_changed"] is True
    assert body["recalculation"]["total_accounts"] == 1
    assert Decimal(body["current_balance"]) == Decimal("75.00")


def test_posting_endpoints(client, chart):
    invoice = {
        "id": 9, "invoice_number": "INV-9", "customer_name": "Acme",
        "issue_date": "2025-03-02", "total_with_vat": "110", "vat_amount": "10",
    }

    first = client.post("/postings/invoices", json=invoice, headers=HEADERS)
    second = client.post("/postings/invoices", json=invoice, headers=HEADERS)
    assert first.status_code == 200
    assert first.json()["status"] == "posted"
    assert first.json()["id"] == second.json()["id"]

    skipped = client.post("/postings/expenses", json={"id": 1, "category": "Rent", "amount": "0"}, headers=HEADERS)
    assert skipped.status_code == 200
    assert skipped.json() is None

    missing = client.post("/postings/sales", json={"id": 1, "total_sales": "10"}, headers={"X-Tenant-ID": "empty"})
    assert missing.status_code == 409
    assert missing.json()["detail"]["kind"] == "MissingAccount"
