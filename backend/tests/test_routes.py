# Overview: Pytest coverage for the HTTP API surface and account scoping.

"""
API tests

Drive the blueprints through the Flask test client:
1. Every ledger route needs a valid X-Account-Id header
2. One account can never see or touch another account's rows
3. Validation failures map to 400 and write nothing
4. Reports serve the same numbers as the services
"""

import pytest

from bookledger.models import Item, Sale, Transfer
from bookledger.extensions import db


class TestAccountHeader:
    """The account context every ledger route runs in."""

    def test_missing_header_rejected(self, client, db_session, account):
        response = client.get("/api/items/")
        assert response.status_code == 400

    def test_non_integer_header_rejected(self, client, db_session, account):
        response = client.get("/api/items/", headers={"X-Account-Id": "abc"})
        assert response.status_code == 400

    def test_unknown_account_is_404(self, client, db_session, account):
        response = client.get("/api/items/", headers={"X-Account-Id": "99999"})
        assert response.status_code == 404

    def test_inactive_account_is_404(self, client, db_session, account, headers):
        account.is_active = False
        db_session.commit()

        response = client.get("/api/items/", headers=headers)
        assert response.status_code == 404


class TestAccountIsolation:
    """Rows of account B are invisible from account A."""

    def test_items_list_is_scoped(self, client, db_session, account, other_account, book):
        response = client.get("/api/items/", headers={"X-Account-Id": str(other_account.id)})
        assert response.status_code == 200
        assert response.get_json()["items"] == []

    def test_foreign_item_is_404(self, client, db_session, account, other_account, book):
        response = client.get(f"/api/items/{book.id}", headers={"X-Account-Id": str(other_account.id)})
        assert response.status_code == 404

    def test_foreign_customer_cannot_be_charged(self, client, db_session, account, other_account, book, customer):
        response = client.post(
            "/api/sales/",
            json={"customer_id": customer.id, "lines": [{"item_id": book.id, "quantity": 1}],
                  "payment_method": "CASH"},
            headers={"X-Account-Id": str(other_account.id)},
        )
        assert response.status_code == 404
        assert db_session.query(Sale).count() == 0

    def test_balance_sheet_is_scoped(self, client, db_session, account, other_account, headers):
        client.post("/api/capital", json={"amount_cents": 5000, "payment_method": "CASH", "initial": True},
                    headers=headers)

        mine = client.get("/api/reports/balance-sheet", headers=headers).get_json()
        theirs = client.get("/api/reports/balance-sheet",
                            headers={"X-Account-Id": str(other_account.id)}).get_json()

        assert mine["assets"]["cash_cents"] == 5000
        assert theirs["assets"]["cash_cents"] == 0


class TestSalesApi:

    def test_create_sale(self, client, db_session, account, book, customer, headers):
        response = client.post(
            "/api/sales/",
            json={
                "customer_id": customer.id,
                "lines": [{"item_id": book.id, "quantity": 1, "unit_price_cents": 1000}],
                "payment_method": "SPLIT",
                "amount_paid_cents": 400,
                "split_payment_method": "CASH",
                "occurred_at": "2024-12-10T12:00:00Z",
            },
            headers=headers,
        )

        assert response.status_code == 201
        sale = response.get_json()["sale"]
        assert sale["document_number"] == "SALE-0001"
        assert sale["occurred_at"] == "2024-12-10T12:00:00Z"

        sheet = client.get("/api/reports/balance-sheet?as_of=2024-12-10", headers=headers).get_json()
        assert sheet["assets"]["cash_cents"] == 400
        assert sheet["assets"]["receivables_cents"] == 600

    def test_oversell_is_400(self, client, db_session, account, second_book, customer, headers):
        response = client.post(
            "/api/sales/",
            json={"customer_id": customer.id, "lines": [{"item_id": second_book.id, "quantity": 4}],
                  "payment_method": "CASH"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.get_json()["details"]["on_hand"] == 3
        assert db_session.get(Item, second_book.id).stock == 3

    def test_customer_required(self, client, db_session, account, headers):
        response = client.post("/api/sales/", json={"lines": []}, headers=headers)
        assert response.status_code == 400

    def test_malformed_timestamp_is_400(self, client, db_session, account, book, customer, headers):
        response = client.post(
            "/api/sales/",
            json={"customer_id": customer.id, "lines": [{"item_id": book.id, "quantity": 1}],
                  "payment_method": "CASH", "occurred_at": "yesterday"},
            headers=headers,
        )

        assert response.status_code == 400
        assert "Invalid date" in response.get_json()["error"]
        assert db_session.query(Sale).count() == 0
        assert db_session.get(Item, book.id).stock == 10


class TestPaymentsApi:

    def test_payment_settles_due(self, client, db_session, account, book, customer, headers):
        client.post(
            "/api/sales/",
            json={"customer_id": customer.id, "lines": [{"item_id": book.id, "quantity": 1}],
                  "payment_method": "DUE"},
            headers=headers,
        )

        response = client.post(
            "/api/payments/",
            json={"customer_id": customer.id, "amount_cents": 35000, "payment_method": "BANK"},
            headers=headers,
        )

        assert response.status_code == 201
        body = response.get_json()
        assert len(body["settled"]) == 1
        detail = client.get(f"/api/customers/{customer.id}", headers=headers).get_json()
        assert detail["customer"]["due_balance_cents"] == 0

    def test_invalid_payment_is_400(self, client, db_session, account, customer, headers):
        response = client.post(
            "/api/payments/",
            json={"customer_id": customer.id, "amount_cents": 0, "payment_method": "CASH"},
            headers=headers,
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("path, body", [
        ("/api/payments/", {"amount_cents": 500, "payment_method": "CASH", "occurred_at": "31/12/2024"}),
        ("/api/expenses", {"description": "Rent", "amount_cents": 500, "payment_method": "CASH",
                           "occurred_at": "not-a-date"}),
    ])
    def test_malformed_timestamp_is_400(self, client, db_session, account, customer, headers, path, body):
        response = client.post(path, json={"customer_id": customer.id, **body}, headers=headers)
        assert response.status_code == 400


class TestReportsApi:

    def test_bad_as_of_is_400(self, client, db_session, account, headers):
        response = client.get("/api/reports/balance-sheet?as_of=not-a-date", headers=headers)
        assert response.status_code == 400

    def test_monthly_requires_period(self, client, db_session, account, headers):
        assert client.get("/api/reports/monthly", headers=headers).status_code == 400
        assert client.get("/api/reports/monthly?year=2024&month=13", headers=headers).status_code == 400
        assert client.get("/api/reports/monthly?year=2024&month=3", headers=headers).status_code == 200

    def test_out_of_range_month_is_400(self, client, db_session, account, headers):
        response = client.get("/api/reports/monthly?year=1&month=1", headers=headers)
        assert response.status_code == 400

    def test_dashboard(self, client, db_session, account, book, customer, headers):
        client.post("/api/sales/", json={"customer_id": customer.id, "lines": [{"item_id": book.id, "quantity": 1}],
                                          "payment_method": "DUE"}, headers=headers)

        response = client.get("/api/reports/dashboard", headers=headers)

        assert response.status_code == 200
        body = response.get_json()
        assert body["books_in_stock"] == 9
        assert body["monthly_sales_count"] == 1
        assert body["receivables_cents"] == 35000
        assert body["pending_receivables_count"] == 1

    def test_account_balances(self, client, db_session, account, headers):
        client.post("/api/transfers/", json={"from_account": "BANK", "to_account": "CASH", "amount_cents": 700},
                    headers=headers)

        body = client.get("/api/reports/account-balances", headers=headers).get_json()

        assert body == {"cash_cents": 700, "bank_cents": -700}

    def test_unreadable_store_is_503(self, client, db_session, account, headers):
        Transfer.__table__.drop(db.engine)
        try:
            response = client.get("/api/reports/balance-sheet", headers=headers)
        finally:
            Transfer.__table__.create(db.engine)

        assert response.status_code == 503
        assert response.get_json()["details"]["store"] == "transfers"


def test_health(client, db_session):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["checks"]["database"]["status"] == "healthy"


@pytest.mark.parametrize("path", ["/api/expenses", "/api/donations", "/api/capital", "/api/purchases",
                                  "/api/payables", "/api/returns/", "/api/transfers/"])
def test_list_routes_respond(client, db_session, account, headers, path):
    assert client.get(path, headers=headers).status_code == 200
