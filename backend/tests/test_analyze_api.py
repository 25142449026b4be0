"""
Tests for the analyze, analysis history and status endpoints
"""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from finai.core.groq_client import GroqError, GroqResponse
from finai.services import analysis_service

PROVIDER_ANALYSIS = {
    "totalSpent": "294.74",
    "subscriptions": 6,
    "subscriptionCost": "72.94",
    "predictions": {"nextMonth": "310.00", "savings": "30.00"},
    "insights": ["one", "two", "three", "four"],
    "duplicates": [{"name": "Streaming", "count": 4, "saving": 25.5}],
}


@pytest.fixture
def groq_mode(settings, monkeypatch):
    """Switch the app to provider mode with a stubbed client"""
    monkeypatch.setattr(settings, "demo_mode", False)
    monkeypatch.setattr(settings, "groq_api_key", "gsk_test")
    monkeypatch.setattr(settings, "groq_model", "llama-test")

    fake = SimpleNamespace(generate=AsyncMock())
    monkeypatch.setattr(analysis_service, "get_groq_client", lambda: fake)
    return fake


def test_root_status(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["mode"] == "demo"
    assert "timestamp" in body
    assert "X-Request-ID" in response.headers


def test_root_status_groq_mode(client, groq_mode):
    assert client.get("/").json()["mode"] == "groq"


def test_readiness(client):
    response = client.get("/health/readiness")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"


def test_metrics_endpoint(client):
    client.get("/")
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "finai_http_requests_total" in response.text


def test_analyze_empty_list_is_400(client):
    response = client.post("/api/analyze", json={"transactions": []})

    assert response.status_code == 400
    assert response.json()["error"] == "No transactions were sent for analysis"


def test_analyze_missing_transactions_is_400(client):
    response = client.post("/api/analyze", json={})

    assert response.status_code == 400


def test_analyze_invalid_transaction_is_400(client):
    response = client.post("/api/analyze", json={"transactions": [{"description": "x"}]})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request"


def test_analyze_demo_mode(client, sample_transactions):
    response = client.post("/api/analyze", json={"transactions": sample_transactions})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["mode"] == "demo"
    assert body["model"] == "simulation"
    assert body["tokensUsed"] == 0

    analysis = body["analysis"]
    expected_total = sum(abs(t["amount"]) for t in sample_transactions)
    expected_subs = sum(abs(t["amount"]) for t in sample_transactions if t["category"] == "Suscripción")
    assert float(analysis["totalSpent"]) == pytest.approx(expected_total)
    assert float(analysis["subscriptionCost"]) == pytest.approx(expected_subs)
    assert analysis["subscriptions"] == 6
    assert len(analysis["insights"]) == 4
    assert set(analysis["predictions"]) == {"nextMonth", "savings"}


def test_analyze_saves_history(client, sample_transactions):
    body = client.post("/api/analyze", json={"transactions": sample_transactions}).json()
    assert body["analysisId"] is not None

    history = client.get("/api/analyses").json()
    assert history["success"] is True
    assert len(history["analyses"]) == 1

    item = history["analyses"][0]
    assert item["id"] == body["analysisId"]
    assert item["totalSpent"] == pytest.approx(294.74)
    assert item["subscriptions"] == 6
    assert item["savingsPotential"] == pytest.approx(29.18)
    assert item["transactionCount"] == len(sample_transactions)
    assert item["mode"] == "demo"
    assert len(item["insights"]) == 4
    assert item["createdAt"]


def test_analyze_without_history(client, settings, monkeypatch, sample_transactions):
    monkeypatch.setattr(settings, "save_analyses", False)

    body = client.post("/api/analyze", json={"transactions": sample_transactions}).json()

    assert body["success"] is True
    assert body["analysisId"] is None
    assert client.get("/api/analyses").json()["analyses"] == []


def test_analyses_history_limit(client, sample_transactions):
    for _ in range(12):
        client.post("/api/analyze", json={"transactions": sample_transactions[:2]})

    assert len(client.get("/api/analyses").json()["analyses"]) == 10
    assert len(client.get("/api/analyses", params={"limit": 3}).json()["analyses"]) == 3
    assert client.get("/api/analyses", params={"limit": 0}).status_code == 400


def test_get_and_delete_analysis(client, sample_transactions):
    analysis_id = client.post("/api/analyze", json={"transactions": sample_transactions}).json()["analysisId"]

    assert client.get(f"/api/analyses/{analysis_id}").json()["analysis"]["id"] == analysis_id
    assert client.delete(f"/api/analyses/{analysis_id}").status_code == 200
    assert client.get(f"/api/analyses/{analysis_id}").status_code == 404
    assert client.delete(f"/api/analyses/{analysis_id}").status_code == 404


def test_analyze_groq_mode(client, groq_mode, sample_transactions):
    groq_mode.generate.return_value = GroqResponse(
        model="llama-test",
        content=f"```json\n{json.dumps(PROVIDER_ANALYSIS)}\n```",
        tokens_used=512,
    )

    response = client.post("/api/analyze", json={"transactions": sample_transactions})

    assert response.status_code == 200
    body = response.json()
    assert body["analysis"] == PROVIDER_ANALYSIS
    assert body["tokensUsed"] == 512
    assert body["mode"] == "groq"
    assert body["model"] == "llama-test"

    saved = client.get("/api/analyses").json()["analyses"][0]
    assert saved["predictions"]["nextMonth"] == 310.0
    assert saved["tokensUsed"] == 512


def test_analyze_groq_unparseable_response(client, groq_mode, sample_transactions):
    raw = "I think you spend too much on streaming."
    groq_mode.generate.return_value = GroqResponse(model="llama-test", content=raw, tokens_used=20)

    response = client.post("/api/analyze", json={"transactions": sample_transactions})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Error processing the AI response"
    assert body["details"] == raw
    assert client.get("/api/analyses").json()["analyses"] == []


def test_analyze_groq_non_finite_number_is_parse_error(client, groq_mode, sample_transactions):
    raw = '{"totalSpent": NaN, "subscriptions": 1, "subscriptionCost": "9.99", "insights": []}'
    groq_mode.generate.return_value = GroqResponse(model="llama-test", content=raw, tokens_used=20)

    response = client.post("/api/analyze", json={"transactions": sample_transactions})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Error processing the AI response"
    assert body["details"] == raw
    assert client.get("/api/analyses").json()["analyses"] == []


def test_analyze_groq_empty_response(client, groq_mode, sample_transactions):
    groq_mode.generate.return_value = GroqResponse(model="llama-test", content="", tokens_used=0)

    response = client.post("/api/analyze", json={"transactions": sample_transactions})

    assert response.status_code == 500
    assert response.json()["details"] == "Empty response from provider"


def test_analyze_groq_provider_failure(client, groq_mode, sample_transactions):
    groq_mode.generate.side_effect = GroqError("HTTP error from Groq: 503 - unavailable")

    response = client.post("/api/analyze", json={"transactions": sample_transactions})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Error analyzing transactions"
    assert "503" in body["details"]
