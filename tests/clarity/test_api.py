# ruff: noqa: S106
"""Tests for the HTTP API using FastAPI's test client."""

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from clarity.errors import PlaidProviderError
from clarity.storage import DuckDBTransactionStore

PlaidRecordFactory = Callable[..., dict[str, Any]]


class TestHealth:
    @pytest.mark.unit
    def test_health(self, client: TestClient) -> None:
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "OK",
            "message": "Clarity Finance Backend is running",
        }

    @pytest.mark.unit
    def test_security_headers(self, client: TestClient) -> None:
        response = client.get("/api/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert "https://cdn.plaid.com" in response.headers["Content-Security-Policy"]

    @pytest.mark.unit
    def test_cors_allows_dev_origin(self, client: TestClient) -> None:
        response = client.options(
            "/api/health",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
        assert response.headers["access-control-allow-credentials"] == "true"

    @pytest.mark.unit
    def test_cors_rejects_unknown_origin(self, client: TestClient) -> None:
        response = client.get("/api/health", headers={"Origin": "https://evil.example"})
        assert "access-control-allow-origin" not in response.headers


class TestLinkAndExchange:
    """Link token creation and public token exchange."""

    @pytest.mark.unit
    def test_link_token_requires_user_id(self, client: TestClient) -> None:
        response = client.post("/api/plaid/create-link-token", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "User ID is required"}

    @pytest.mark.unit
    def test_link_token_without_body(self, client: TestClient) -> None:
        response = client.post("/api/plaid/create-link-token")
        assert response.status_code == 400
        assert response.json()["error"] == "User ID is required"

    @pytest.mark.unit
    def test_link_token_success(self, client: TestClient, plaid_client: MagicMock) -> None:
        plaid_client.link_token_create.return_value = {
            "link_token": "link-sandbox-abc",
            "expiration": "2024-01-01T00:00:00Z",
            "request_id": "req-1",
        }

        response = client.post("/api/plaid/create-link-token", json={"userId": "u1"})

        assert response.status_code == 200
        assert response.json()["link_token"] == "link-sandbox-abc"

    @pytest.mark.unit
    def test_link_token_provider_failure(
        self, client: TestClient, mocker: Any
    ) -> None:
        mocker.patch(
            "clarity.plaid.PlaidGateway.create_link_token",
            side_effect=PlaidProviderError(
                "Plaid link token create failed",
                details={"error_code": "INVALID_API_KEYS"},
            ),
        )

        response = client.post("/api/plaid/create-link-token", json={"userId": "u1"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Unable to create link token",
            "details": {"error_code": "INVALID_API_KEYS"},
        }

    @pytest.mark.unit
    def test_exchange_requires_public_token(self, client: TestClient) -> None:
        response = client.post("/api/plaid/exchange-token", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Public token is required"

    @pytest.mark.unit
    def test_exchange_returns_camel_case(
        self, client: TestClient, plaid_client: MagicMock
    ) -> None:
        plaid_client.item_public_token_exchange.return_value = {
            "access_token": "access-sandbox-1",
            "item_id": "item-1",
        }

        response = client.post(
            "/api/plaid/exchange-token", json={"public_token": "public-sandbox-1"}
        )

        assert response.status_code == 200
        assert response.json() == {"accessToken": "access-sandbox-1", "itemId": "item-1"}

    @pytest.mark.unit
    def test_exchange_with_incomplete_payload(
        self, client: TestClient, plaid_client: MagicMock
    ) -> None:
        plaid_client.item_public_token_exchange.return_value = {"item_id": "item-1"}

        response = client.post(
            "/api/plaid/exchange-token", json={"public_token": "public-sandbox-1"}
        )

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Unable to exchange token"
        assert "details" in body

    @pytest.mark.unit
    def test_malformed_json_body(self, client: TestClient) -> None:
        response = client.post(
            "/api/plaid/exchange-token",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body"


class TestSyncAndAccounts:
    """Transaction sync and account lookup."""

    @pytest.mark.unit
    def test_sync_requires_all_fields(self, client: TestClient) -> None:
        response = client.post(
            "/api/plaid/sync-transactions", json={"access_token": "access-1"}
        )

        assert response.status_code == 400
        assert (
            response.json()["error"]
            == "Access token, start date, and end date are required"
        )

    @pytest.mark.unit
    def test_sync_rejects_bad_date(self, client: TestClient) -> None:
        response = client.post(
            "/api/plaid/sync-transactions",
            json={
                "access_token": "access-1",
                "start_date": "01/01/2024",
                "end_date": "2024-01-31",
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid date format"

    @pytest.mark.unit
    def test_sync_success(
        self,
        client: TestClient,
        plaid_client: MagicMock,
        plaid_transaction: PlaidRecordFactory,
    ) -> None:
        plaid_client.transactions_get.return_value = {
            "transactions": [plaid_transaction()],
            "accounts": [],
            "total_transactions": 1,
        }

        response = client.post(
            "/api/plaid/sync-transactions",
            json={
                "access_token": "access-1",
                "start_date": "2024-01-01",
                "end_date": "2024-01-31",
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total_transactions"] == 1
        assert body["transactions"][0]["transaction_id"] == "txn_1"
        assert body["accounts"] == []

    @pytest.mark.unit
    def test_sync_provider_failure(
        self, client: TestClient, plaid_client: MagicMock
    ) -> None:
        plaid_client.transactions_get.side_effect = RuntimeError("timeout")

        response = client.post(
            "/api/plaid/sync-transactions",
            json={
                "access_token": "access-1",
                "start_date": "2024-01-01",
                "end_date": "2024-01-31",
            },
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Unable to sync transactions"

    @pytest.mark.unit
    def test_accounts_requires_token(self, client: TestClient) -> None:
        response = client.post("/api/plaid/accounts", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Access token is required"

    @pytest.mark.unit
    def test_accounts_success(self, client: TestClient, plaid_client: MagicMock) -> None:
        plaid_client.accounts_get.return_value = {
            "accounts": [
                {
                    "account_id": "acc_1",
                    "name": "Checking",
                    "type": "depository",
                    "persistent_account_id": "persist-1",
                    "balances": {"current": 50.0},
                }
            ]
        }

        response = client.post("/api/plaid/accounts", json={"access_token": "access-1"})

        assert response.status_code == 200
        assert response.json()["accounts"][0]["account_id"] == "acc_1"
        assert response.json()["accounts"][0]["persistent_account_id"] == "persist-1"


class TestSaveTransactions:
    """Bulk persistence of fetched Plaid records."""

    @pytest.mark.unit
    def test_requires_transactions_and_user(self, client: TestClient) -> None:
        response = client.post("/api/plaid/save-transactions", json={"userId": "u1"})

        assert response.status_code == 400
        assert response.json()["error"] == "Transactions and userId are required"

    @pytest.mark.unit
    def test_saves_converted_records(
        self,
        client: TestClient,
        store: DuckDBTransactionStore,
        plaid_transaction: PlaidRecordFactory,
    ) -> None:
        payload = {
            "userId": "u1",
            "transactions": [
                plaid_transaction(amount=25.0),
                plaid_transaction(transaction_id="t2", amount=-100.0, category=None),
            ],
        }

        response = client.post("/api/plaid/save-transactions", json=payload)

        assert response.status_code == 200
        assert response.json() == {"success": True, "count": 2}
        rows = store.list_transactions("u1")
        assert sorted(r.type for r in rows) == ["credit", "debit"]
        assert all(r.amount > 0 for r in rows)
        assert {r.category for r in rows} == {"Food and Drink", "Other"}

    @pytest.mark.unit
    def test_rejects_oversized_batch_without_writing(
        self,
        client: TestClient,
        store: DuckDBTransactionStore,
        plaid_transaction: PlaidRecordFactory,
    ) -> None:
        payload = {
            "userId": "u1",
            "transactions": [
                plaid_transaction(transaction_id=f"t{i}") for i in range(1001)
            ],
        }

        response = client.post("/api/plaid/save-transactions", json=payload)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Too many transactions",
            "message": "Maximum 1000 transactions per request",
        }
        assert store.list_transactions() == []

    @pytest.mark.unit
    def test_rejects_invalid_record(self, client: TestClient) -> None:
        response = client.post(
            "/api/plaid/save-transactions",
            json={"userId": "u1", "transactions": [{"amount": 5}]},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid transaction payload"

    @pytest.mark.unit
    def test_empty_batch_is_accepted(self, client: TestClient) -> None:
        response = client.post(
            "/api/plaid/save-transactions", json={"userId": "u1", "transactions": []}
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "count": 0}


class TestStoredTransactions:
    """Caller-scoped transaction routes."""

    @pytest.mark.unit
    def test_crud_flow(self, client: TestClient) -> None:
        created = client.post(
            "/api/transactions",
            json={
                "date": "2024-03-01",
                "description": "Book store",
                "amount": -30.0,
                "type": "debit",
                "category": "Shopping",
            },
        )
        assert created.status_code == 201
        record = created.json()
        assert record["amount"] == 30.0
        assert record["user_id"] == "user-123"

        listed = client.get("/api/transactions", params={"search": "book"})
        assert listed.json()["count"] == 1
        assert listed.json()["categories"] == ["Shopping"]

        updated = client.patch(
            f"/api/transactions/{record['id']}", json={"category": "Books"}
        )
        assert updated.status_code == 200
        assert updated.json()["category"] == "Books"

        deleted = client.delete(f"/api/transactions/{record['id']}")
        assert deleted.json() == {"success": True}
        assert client.get("/api/transactions").json()["count"] == 0

    @pytest.mark.unit
    def test_update_missing_transaction(self, client: TestClient) -> None:
        response = client.patch("/api/transactions/9999", json={"category": "X"})

        assert response.status_code == 404
        assert response.json() == {"error": "Transaction not found"}

    @pytest.mark.unit
    def test_update_without_fields(self, client: TestClient) -> None:
        response = client.patch("/api/transactions/1", json={})
        assert response.status_code == 400

    @pytest.mark.unit
    def test_spending_and_dashboard(
        self, client: TestClient, store: DuckDBTransactionStore
    ) -> None:
        for day, amount, kind, category in [
            ("2024-01-03", 2000.0, "credit", "Income"),
            ("2024-01-04", 500.0, "debit", "Housing"),
            ("2024-01-05", 50.0, "debit", "Food"),
            ("2024-02-05", 70.0, "debit", "Food"),
        ]:
            client.post(
                "/api/transactions",
                json={"date": day, "amount": amount, "type": kind, "category": category},
            )

        spending = client.get("/api/transactions/spending-by-category").json()
        assert spending["spending"] == [
            {"category": "Housing", "amount": 500.0},
            {"category": "Food", "amount": 120.0},
        ]

        dashboard = client.get("/api/dashboard", params={"month": "2024-01"}).json()
        assert dashboard["selected_month"] == "2024-01"
        assert dashboard["totals"]["net"] == 2000.0 - 620.0
        assert [c["category"] for c in dashboard["category_breakdown"]] == [
            "Housing",
            "Food",
        ]
        assert dashboard["available_months"] == ["2024-02", "2024-01"]

    @pytest.mark.unit
    def test_dashboard_rejects_bad_month(self, client: TestClient) -> None:
        response = client.get("/api/dashboard", params={"month": "January"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid month"


class TestDemoRoutes:
    @pytest.mark.unit
    def test_demo_transactions_are_signed(self, client: TestClient) -> None:
        body = client.get("/api/demo/transactions").json()

        assert body["count"] == len(body["transactions"]) > 0
        for t in body["transactions"]:
            assert (t["amount"] >= 0) == (t["type"] == "credit")

    @pytest.mark.unit
    def test_demo_transactions_date_range(self, client: TestClient) -> None:
        body = client.get(
            "/api/demo/transactions",
            params={"start_date": "2024-01-01", "end_date": "2024-01-31"},
        ).json()

        assert body["count"] > 0
        assert all(t["date"].startswith("2024-01") for t in body["transactions"])

    @pytest.mark.unit
    def test_demo_transactions_bad_date(self, client: TestClient) -> None:
        response = client.get(
            "/api/demo/transactions",
            params={"start_date": "yesterday", "end_date": "2024-01-31"},
        )
        assert response.status_code == 400

    @pytest.mark.unit
    def test_demo_accounts(self, client: TestClient) -> None:
        body = client.get("/api/demo/accounts").json()

        assert body["accounts"][0]["id"] == "checking_001"
        assert body["net_worth"] == pytest.approx(body["accounts"][0]["balance"])

    @pytest.mark.unit
    def test_demo_dashboard(self, client: TestClient) -> None:
        body = client.get("/api/demo/dashboard").json()

        totals = body["totals"]
        assert body["selected_month"] == "all"
        assert totals["net"] == pytest.approx(
            totals["total_income"] - totals["total_expenses"]
        )
        assert len(body["recent_transactions"]) == 5
