"""
Tests for transaction API endpoints and the transaction service aggregates
"""
from datetime import date
from decimal import Decimal

import pytest

from finai.models.transaction import Transaction
from finai.services.transaction_service import (DEMO_TRANSACTIONS,
                                                TransactionService)


def _create(client, **overrides):
    payload = {"description": "Coffee", "amount": -3.5, "category": "Comida", "date": "2025-12-20"}
    payload.update(overrides)
    response = client.post("/api/transactions", json=payload)
    assert response.status_code == 201
    return response.json()["transaction"]


def test_transactions_router_routes():
    from finai.api.routes import transactions

    routes = {route.path for route in transactions.router.routes}
    assert "/api/transactions" in routes
    assert "/api/transactions/{transaction_id}" in routes
    assert "/api/transactions/summary" in routes
    assert "/api/transactions/trends" in routes


def test_create_transaction(client):
    created = _create(client, description="Netflix", amount=-15.99, category="Suscripción", date="2026-01-01")

    assert created["id"] > 0
    assert created == {
        "id": created["id"],
        "date": "2026-01-01",
        "description": "Netflix",
        "amount": -15.99,
        "category": "Suscripción",
    }


def test_create_transaction_defaults(client):
    response = client.post("/api/transactions", json={"description": "Misc", "amount": -1})

    assert response.status_code == 201
    body = response.json()["transaction"]
    assert body["category"] == "Other"
    assert body["date"] == date.today().isoformat()


@pytest.mark.parametrize("payload", [
    {"amount": -10, "category": "Food"},
    {"description": "No amount"},
    {"description": "", "amount": -1},
    {"description": "Bad amount", "amount": "lots"},
    {"description": "Bad date", "amount": -1, "date": "yesterday"},
])
def test_create_transaction_invalid_input(client, payload):
    response = client.post("/api/transactions", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Invalid request"
    assert body["details"]


def test_list_transactions_newest_first(client):
    _create(client, description="Old", date="2025-11-01")
    _create(client, description="New", date="2026-01-05")
    _create(client, description="Middle", date="2025-12-15")

    response = client.get("/api/transactions")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert [t["description"] for t in body["transactions"]] == ["New", "Middle", "Old"]


def test_delete_transaction_removes_only_that_row(client):
    first = _create(client, description="Keep 1")
    target = _create(client, description="Remove me")
    last = _create(client, description="Keep 2")

    response = client.delete(f"/api/transactions/{target['id']}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "id": target["id"]}

    remaining = client.get("/api/transactions").json()["transactions"]
    assert sorted(t["id"] for t in remaining) == sorted([first["id"], last["id"]])
    assert {t["description"] for t in remaining} == {"Keep 1", "Keep 2"}
    assert next(t for t in remaining if t["id"] == first["id"]) == first


def test_delete_missing_transaction(client):
    response = client.delete("/api/transactions/999")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_update_transaction(client):
    created = _create(client)

    response = client.put(f"/api/transactions/{created['id']}", json={"amount": -4.25, "category": "Café"})

    assert response.status_code == 200
    updated = response.json()["transaction"]
    assert updated["amount"] == -4.25
    assert updated["category"] == "Café"
    assert updated["description"] == created["description"]
    assert updated["date"] == created["date"]


def test_update_missing_transaction(client):
    response = client.put("/api/transactions/404", json={"amount": -1})

    assert response.status_code == 404


def test_summary(db, client):
    service = TransactionService(db)
    today = date.today()
    service.create_transaction("Lunch", Decimal("-12.00"), "Comida", today)
    service.create_transaction("Bus", Decimal("-3.00"), "Transporte", today)
    service.create_transaction("Rent", Decimal("-500.00"), "Vivienda", date(2020, 1, 1))

    response = client.get("/api/transactions/summary")

    assert response.status_code == 200
    summary = response.json()["summary"]
    assert summary["todayTotal"] == 15.0
    assert summary["weekTotal"] == 15.0
    assert summary["totalSpent"] == 515.0
    assert summary["transactionCount"] == 3
    assert summary["topCategories"][0] == {"category": "Vivienda", "total": 500.0}
    assert summary["averageDaily"] == 257.5
    assert summary["isAboveAverage"] is False


def test_summary_week_covers_last_seven_days(db):
    service = TransactionService(db)
    today = date(2026, 3, 15)
    service.create_transaction("Market", Decimal("-10.00"), "Comida", date(2026, 3, 9))
    service.create_transaction("Cinema", Decimal("-20.00"), "Ocio", date(2026, 3, 8))
    service.create_transaction("Booked trip", Decimal("-40.00"), "Viajes", date(2026, 3, 16))

    summary = service.summary(today=today)

    assert summary["weekTotal"] == 10.0
    assert summary["todayTotal"] == 0.0


def test_trends_monthly(db, client):
    service = TransactionService(db)
    service.create_transaction("A", Decimal("-100.00"), "Comida", date(2025, 11, 3))
    service.create_transaction("B", Decimal("-50.00"), "Comida", date(2025, 12, 4))
    service.create_transaction("C", Decimal("-100.00"), "Comida", date(2025, 12, 20))

    response = client.get("/api/transactions/trends", params={"period": "monthly"})

    assert response.status_code == 200
    trends = response.json()["trends"]
    assert trends["points"] == [
        {"period": "2025-11", "total": 100.0},
        {"period": "2025-12", "total": 150.0},
    ]
    comparison = trends["comparison"]
    assert comparison["currentMonth"] == "2025-12"
    assert comparison["previousMonth"] == "2025-11"
    assert comparison["change"] == 50.0
    assert comparison["avgChange"] == -25.0
    assert comparison["isIncreasing"] is True


def test_trends_weekly_keys(db):
    service = TransactionService(db)
    service.create_transaction("A", Decimal("-1.00"), "X", date(2026, 1, 1))

    trends = service.trends("weekly")

    assert trends["points"] == [{"period": "2026-W01", "total": 1.0}]
    assert trends["comparison"] is None


def test_trends_unknown_period(client):
    response = client.get("/api/transactions/trends", params={"period": "yearly"})

    assert response.status_code == 400
    assert "yearly" in response.json()["error"]


def test_seed_demo_transactions_only_when_empty(db):
    service = TransactionService(db)

    assert service.seed_demo_transactions() == len(DEMO_TRANSACTIONS)
    assert service.seed_demo_transactions() == 0
    assert db.query(Transaction).count() == len(DEMO_TRANSACTIONS)
