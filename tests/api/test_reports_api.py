"""
API tests - Reports endpoints over an in-memory snapshot.
"""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from stockledger.api.routers.reports import get_snapshot
from stockledger.core.config import Settings, get_settings
from stockledger.main import app


@pytest.fixture
def client(snapshot):
    app.dependency_overrides[get_snapshot] = lambda: snapshot
    app.dependency_overrides[get_settings] = lambda: Settings(capital=Decimal("315000"))
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestReportsAPI:
    """Test report endpoints and error mapping."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_balance_sheet(self, client):
        """Scenario ledger reconciles over HTTP."""
        response = client.get("/api/v1/reports/balance-sheet", params={"as_of": "2025-12-31"})

        assert response.status_code == 200
        body = response.json()
        assert body["reconciled"] is True
        assert Decimal(body["assets"]) == Decimal("350320")
        assert Decimal(body["liabilities_and_equity"]) == Decimal("350320")
        assert Decimal(body["lines"]["inventory"]) == Decimal("247800")
        assert body["warnings"] == []

    def test_invalid_date_is_bad_request(self, client):
        """Unparseable dates map to HTTP 400."""
        response = client.get("/api/v1/reports/balance-sheet", params={"as_of": "31/12/2025"})
        assert response.status_code == 400
        assert "as_of" in response.json()["detail"]

    def test_missing_date_is_unprocessable(self, client):
        response = client.get("/api/v1/reports/balance-sheet")
        assert response.status_code == 422

    def test_account_balance(self, client):
        response = client.get("/api/v1/reports/accounts/C001/balance", params={"as_of": "2025-12-31"})

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["balance"]) == Decimal("5520")
        assert Decimal(body["total_debit"]) == Decimal("5520")

    def test_unknown_account_is_not_found(self, client):
        response = client.get("/api/v1/reports/accounts/C999/balance", params={"as_of": "2025-12-31"})
        assert response.status_code == 404

    def test_account_statement(self, client):
        response = client.get(
            "/api/v1/reports/accounts/SF-001/statement",
            params={"from_date": "2025-01-01", "to_date": "2025-12-31"},
        )

        assert response.status_code == 200
        body = response.json()
        assert [row["transaction_id"] for row in body["rows"]] == ["RV-1", "PV-1"]
        assert Decimal(body["closing"]) == Decimal("97000")

    def test_inverted_period_is_bad_request(self, client):
        response = client.get(
            "/api/v1/reports/income-statement",
            params={"from_date": "2025-12-31", "to_date": "2025-01-01"},
        )
        assert response.status_code == 400

    def test_income_statement(self, client):
        response = client.get(
            "/api/v1/reports/income-statement",
            params={"from_date": "2025-01-01", "to_date": "2025-12-31"},
        )

        assert response.status_code == 200
        assert Decimal(response.json()["net_profit"]) == Decimal("600")

    def test_vat_declaration(self, client):
        response = client.get(
            "/api/v1/reports/vat-declaration",
            params={"from_date": "2025-01-01", "to_date": "2025-12-31"},
        )

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["net_vat"]) == Decimal("-5580")
        assert body["branch_id"] is None

    def test_vat_statement(self, client):
        response = client.get(
            "/api/v1/reports/vat-statement",
            params={"from_date": "2025-03-01", "to_date": "2025-12-31"},
        )

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["opening_balance"]) == Decimal("-6300")
        assert body["rows"][0]["direction"] == "DEBIT"

    def test_inventory_valuation(self, client):
        response = client.get("/api/v1/reports/inventory-valuation", params={"as_of": "2025-12-31"})

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["total_value"]) == Decimal("247800")
        assert body["snapshots"][0]["item_code"] == "101"
