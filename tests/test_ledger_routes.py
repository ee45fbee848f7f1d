from __future__ import annotations

import io

import pytest

from propledger.extensions import session_scope
from propledger.models import LedgerEntry
from propledger.services import storage

IMPORT_CSV = (
    "Date,Merchant,Description,Amount,Type,Category\n"
    "2024-01-03,City Water,Water bill,-82.15,Debit,Utilities\n"
    "bad-date,Tenant,Rent,1500,Credit,Rent\n"
    "2024-01-05,Tenant,Rent,1500.00,Credit,Rent\n"
)


def _create(client, headers, **overrides):
    payload = {"date": "2024-03-01", "kind": "expense", "category": "Repairs", "amount": -75.5}
    payload.update(overrides)
    response = client.post("/ledger/", json=payload, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["entry"]


def test_requires_bearer_token(client):
    response = client.get("/ledger/")

    assert response.status_code == 401
    assert response.get_json()["error"] == "unauthorized"
    assert client.get("/ledger/", headers={"Authorization": "Bearer wrong"}).status_code == 401


def test_create_and_list(client, auth_headers):
    entry = _create(client, auth_headers, vendor="Ace")
    _create(client, auth_headers, kind="income", category="Rent", amount=1200, date="2024-03-05")

    assert entry["created_by"] == "user-1"
    assert entry["amount"] == -75.5

    body = client.get("/ledger/", headers=auth_headers).get_json()
    assert body["count"] == 2
    assert [row["category"] for row in body["entries"]] == ["Rent", "Repairs"]

    body = client.get("/ledger/?kind=expense&q=ace", headers=auth_headers).get_json()
    assert [row["id"] for row in body["entries"]] == [entry["id"]]
    assert body["filters"] == {"kind": "expense", "q": "ace"}


def test_create_validates_fields(client, auth_headers):
    response = client.post(
        "/ledger/", json={"kind": "transfer", "amount": "abc"}, headers=auth_headers
    )

    assert response.status_code == 400
    fields = response.get_json()["fields"]
    assert set(fields) == {"date", "kind", "category", "amount"}


def test_update_merges_over_stored_row(client, auth_headers):
    entry = _create(client, auth_headers, vendor="Ace", cost_tag="Closing")

    response = client.patch(
        f"/ledger/{entry['id']}", json={"amount": -90}, headers=auth_headers
    )

    assert response.status_code == 200
    updated = response.get_json()["entry"]
    assert updated["amount"] == -90.0
    assert updated["vendor"] == "Ace"
    assert updated["cost_tag"] == "closing"


def test_get_update_delete_missing(client, auth_headers):
    assert client.get("/ledger/999", headers=auth_headers).status_code == 404
    assert client.patch("/ledger/999", json={}, headers=auth_headers).status_code == 404
    assert client.delete("/ledger/999", headers=auth_headers).status_code == 404


def test_delete(app, client, auth_headers):
    entry = _create(client, auth_headers)

    assert client.delete(f"/ledger/{entry['id']}", headers=auth_headers).status_code == 200

    with app.app_context():
        with session_scope() as session:
            assert session.get(LedgerEntry, entry["id"]) is None


def test_receipt_upload_and_signed_download(client, auth_headers):
    entry = _create(client, auth_headers)

    response = client.post(
        f"/ledger/{entry['id']}/receipt",
        data={"file": (io.BytesIO(b"%PDF-1.4"), "Hardware Receipt.pdf")},
        headers=auth_headers,
        content_type="multipart/form-data",
    )

    assert response.status_code == 201
    updated = response.get_json()["entry"]
    assert updated["receipt_link"].startswith("storage:receipts/")
    assert updated["receipt_link"].endswith(f"_{entry['id']}_Hardware_Receipt.pdf")

    download = client.get(updated["receipt_url"])
    assert download.status_code == 200
    assert download.data == b"%PDF-1.4"

    forged = updated["receipt_url"].rsplit("signature=", 1)[0] + "signature=" + "0" * 64
    assert client.get(forged).status_code == 403


def test_receipt_upload_conflict_returns_409(client, auth_headers, monkeypatch):
    monkeypatch.setattr(storage, "_timestamp_ms", lambda: 1_700_000_000_000)
    entry = _create(client, auth_headers)

    def upload():
        return client.post(
            f"/ledger/{entry['id']}/receipt",
            data={"file": (io.BytesIO(b"%PDF-1.4"), "receipt.pdf")},
            headers=auth_headers,
            content_type="multipart/form-data",
        )

    assert upload().status_code == 201
    second = upload()

    assert second.status_code == 409
    assert second.get_json()["error"] == "conflict"


def test_receipt_upload_requires_file(client, auth_headers):
    entry = _create(client, auth_headers)

    response = client.post(f"/ledger/{entry['id']}/receipt", data={}, headers=auth_headers)

    assert response.status_code == 400
    assert response.get_json()["error"] == "missing_file"


def test_closing_costs_and_rehab_budgets(client, auth_headers):
    _create(client, auth_headers, category="Closing Costs", amount=-3000)
    _create(client, auth_headers, category="Title", cost_tag="closing", amount=-1000)

    body = client.get("/ledger/closing-costs", headers=auth_headers).get_json()
    assert (body["total"], body["count"], body["average"]) == (4000.0, 2, 2000.0)

    prop = client.post(
        "/properties/", json={"address": "4 Flip Way"}, headers=auth_headers
    ).get_json()["property"]
    project = client.post(
        "/rehab/",
        json={"property_id": prop["id"], "title": "Kitchen", "budget_target": 5000},
        headers=auth_headers,
    ).get_json()["project"]
    _create(
        client,
        auth_headers,
        category="Materials",
        amount=-1200,
        is_rehab=True,
        rehab_project_id=project["id"],
    )

    body = client.get("/ledger/rehab-budgets", headers=auth_headers).get_json()
    assert body["budgets"][0]["spent"] == 1200.0
    assert body["budgets"][0]["remaining"] == 3800.0
    assert body["totals"]["count"] == 1


def test_import_upload_is_idempotent(client, auth_headers):
    def upload():
        return client.post(
            "/ledger/import",
            data={"file": (io.BytesIO(IMPORT_CSV.encode("utf-8")), "ledger.csv")},
            headers=auth_headers,
            content_type="multipart/form-data",
        )

    first = upload()
    assert first.status_code == 200
    report = first.get_json()["report"]
    assert (report["parsed"], report["inserted_count"], report["invalid_date_count"]) == (3, 2, 1)
    assert "Rows detected: 3" in first.get_json()["message"]

    second = upload().get_json()["report"]
    assert (second["inserted_count"], second["duplicate_count"]) == (0, 2)

    body = client.get("/ledger/", headers=auth_headers).get_json()
    assert body["count"] == 2
    assert {row["source"] for row in body["entries"]} == {"csv"}


def test_import_accepts_raw_csv_body(client, auth_headers):
    response = client.post(
        "/ledger/import?source=bank",
        data=IMPORT_CSV,
        headers=auth_headers,
        content_type="text/csv",
    )

    assert response.status_code == 200
    body = client.get("/ledger/", headers=auth_headers).get_json()
    assert all(row["fingerprint"].startswith("bank:") for row in body["entries"])


def test_import_preview_does_not_write(client, auth_headers):
    response = client.post(
        "/ledger/import?preview=1",
        data=IMPORT_CSV,
        headers=auth_headers,
        content_type="text/csv",
    )

    body = response.get_json()
    assert body["total_rows"] == 3
    assert body["mapping"]["vendor"] == "merchant"
    assert body["samples"][0]["merchant"] == "City Water"
    assert client.get("/ledger/", headers=auth_headers).get_json()["count"] == 0


@pytest.mark.parametrize("text", ["date,amount\n", "date,amount\nnever,1\n"])
def test_import_with_no_valid_rows(client, auth_headers, text):
    response = client.post(
        "/ledger/import", data=text, headers=auth_headers, content_type="text/csv"
    )

    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "empty_import"
    assert body["message"] == "No rows found to import."


def test_import_without_file(client, auth_headers):
    response = client.post("/ledger/import", headers=auth_headers)

    assert response.status_code == 400
    assert response.get_json()["error"] == "missing_file"
