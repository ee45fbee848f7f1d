from __future__ import annotations

import pytest

DEAL = {
    "address": "12 Oak St",
    "status": "Owned",
    "square_footage": 1000,
    "purchase_price_actual": 140000,
    "list_price": 200000,
    "market_price_per_sf": 150,
    "rehab_cost_est": 30000,
    "heloc_balance_est": 40000,
    "rent_est": 2000,
    "utilities_est": 100,
    "admin_monthly_est": 50,
    "vacancy_pct": 10,
}


@pytest.fixture()
def created(client, auth_headers):
    response = client.post("/properties/", json=DEAL, headers=auth_headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["property"]


def test_create_seeds_defaults_and_metrics(created):
    assert created["status"] == "Owned"
    assert created["is_portfolio"] is True
    assert created["underwriting"]["vacancy_pct"] == 0.1
    assert created["underwriting"]["down_payment_pct"] == 0.25
    assert created["metrics"]["arv_market_based"] == 150000.0
    assert created["metrics"]["net_cash_flow"] == 77.17


def test_create_requires_address_and_valid_numbers(client, auth_headers):
    response = client.post(
        "/properties/",
        json={"status": "Sold", "rent_est": "lots", "square_footage": -5},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert set(response.get_json()["fields"]) == {
        "address",
        "status",
        "rent_est",
        "square_footage",
    }


def test_list_with_portfolio_selection(client, auth_headers, created):
    client.post(
        "/properties/", json={"address": "1 Lead Ln", "rent_est": 900}, headers=auth_headers
    )

    body = client.get("/properties/", headers=auth_headers).get_json()
    assert [p["address"] for p in body["properties"]] == ["1 Lead Ln", "12 Oak St"]
    assert body["totals"]["count"] == 2

    body = client.get(f"/properties/?ids={created['id']}", headers=auth_headers).get_json()
    assert body["totals"]["count"] == 1
    assert body["totals"]["initial_cash_flow"] == 77.17


def test_get_and_missing(client, auth_headers, created):
    body = client.get(f"/properties/{created['id']}", headers=auth_headers).get_json()

    assert body["property"]["address"] == "12 Oak St"
    assert client.get("/properties/999", headers=auth_headers).status_code == 404


def test_partial_update(client, auth_headers, created):
    response = client.patch(
        f"/properties/{created['id']}",
        json={"rent_est": 2500, "status": "Rented"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    prop = response.get_json()["property"]
    assert prop["status"] == "Rented"
    assert prop["address"] == "12 Oak St"
    assert prop["underwriting"]["rent_est"] == 2500
    assert prop["underwriting"]["list_price"] == 200000


def test_update_rejects_empty_and_invalid(client, auth_headers, created):
    url = f"/properties/{created['id']}"

    empty = client.patch(url, json={}, headers=auth_headers)
    assert empty.status_code == 400
    assert empty.get_json()["message"] == "No fields to update."

    blank = client.patch(url, json={"address": ""}, headers=auth_headers)
    assert blank.status_code == 400
    assert "address" in blank.get_json()["fields"]


def test_delete(client, auth_headers, created):
    url = f"/properties/{created['id']}"

    assert client.delete(url, headers=auth_headers).status_code == 200
    assert client.get(url, headers=auth_headers).status_code == 404
    assert client.delete(url, headers=auth_headers).status_code == 404
