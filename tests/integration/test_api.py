"""Integration tests for API endpoints"""

import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY
from wallet_gateway.domain.exceptions import InsufficientFundsError, RemoteUnavailableError


@pytest.fixture
def session_id(client: TestClient) -> int:
    response = client.post("/v1/auth/login", json={"client_id": "clientA", "client_secret": "secretA"})
    assert response.status_code == 200
    return response.json()["session"]["session_id"]


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, session_id: int):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "wallet_authentication_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_is_generated_when_missing_or_oversized(client: TestClient):
    generated = client.get("/health").headers["X-Request-ID"]
    replaced = client.get("/health", headers={"X-Request-ID": "r" * 500}).headers["X-Request-ID"]

    assert len(generated) == 36
    assert len(replaced) == 36
    assert generated != replaced


def test_request_latency_is_labelled_by_route_template(client: TestClient):
    labels = {"method": "GET", "endpoint": "/v1/accounts/{session_id}", "status": "401"}
    before = REGISTRY.get_sample_value("http_request_duration_seconds_count", labels) or 0

    client.get("/v1/accounts/999")

    assert REGISTRY.get_sample_value("http_request_duration_seconds_count", labels) == before + 1
    assert REGISTRY.get_sample_value(
        "http_request_duration_seconds_count", {**labels, "endpoint": "/v1/accounts/999"}
    ) is None


def test_list_environments(client: TestClient):
    response = client.get("/v1/auth/environments")

    assert response.status_code == 200
    data = response.json()
    assert data["environments"] == ["development", "production"]
    assert data["default"] == "development"


def test_login_returns_session_and_major_units(client: TestClient):
    response = client.post(
        "/v1/auth/login",
        json={"client_id": "clientA", "client_secret": "secretA", "environment": "development"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["session"]["client_id"] == "clientA"
    assert data["session"]["environment"] == "development"
    assert data["session"]["token"] == "tok-development"
    assert data["session"]["accounts"][0]["balance"] == 100.0
    assert data["warnings"] == []


def test_login_unknown_environment_is_400(client: TestClient):
    response = client.post(
        "/v1/auth/login",
        json={"client_id": "clientA", "client_secret": "secretA", "environment": "staging"},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "UnknownEnvironmentError"


def test_login_missing_secret_is_422(client: TestClient):
    response = client.post("/v1/auth/login", json={"client_id": "clientA"})
    assert response.status_code == 422


def test_accounts_without_session_is_401(client: TestClient):
    response = client.get("/v1/accounts/999")

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "UnauthenticatedError"


def test_accounts_fallback_is_marked_stale(client: TestClient, session_id: int, dev_provider: AsyncMock):
    dev_provider.get_accounts.side_effect = RemoteUnavailableError("down")

    response = client.get(f"/v1/accounts/{session_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["stale"] is True
    assert data["accounts"][0]["account_id"] == "acc1"
    assert data["accounts"][0]["balance"] == 100.0


def test_beneficiaries_endpoint(client: TestClient, session_id: int):
    response = client.get(f"/v1/beneficiaries/{session_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["stale"] is False
    assert data["beneficiaries"][0]["id"] == "ben1"


def test_create_beneficiary_returns_201(client: TestClient, session_id: int, dev_provider: AsyncMock):
    dev_provider.create_beneficiary.return_value = {"id": "ben2", "accountNumber": "CU002"}

    response = client.post(f"/v1/beneficiaries/{session_id}", json={"accountNumber": "CU002"})

    assert response.status_code == 201
    assert response.json()["id"] == "ben2"
    assert dev_provider.get_beneficiaries.await_count == 2


def test_sms_in_demo_environment(client: TestClient, session_id: int, dev_provider: AsyncMock):
    response = client.post(f"/v1/transfers/{session_id}/sms", json={"phone_number": "+5355555555"})

    assert response.status_code == 200
    data = response.json()
    assert data["skip_sms"] is False
    assert data["demo_mode"] is True
    assert data["demo_code"] == "123456"
    dev_provider.request_sms_code.assert_not_awaited()


def test_simulate_returns_major_unit_numbers(client: TestClient, session_id: int, dev_provider: AsyncMock):
    dev_provider.simulate_transfer.return_value = {"amountToPay": 5025, "fees": 25, "currency": "USD"}

    response = client.post(
        f"/v1/transfers/{session_id}/simulate",
        json={"account_id": "acc1", "beneficiary_id": "ben1", "amount": 50.25, "currency": "usd"},
    )

    assert response.status_code == 200
    assert response.json()["amountToPay"] == 50.25
    assert response.json()["fees"] == 0.25
    payload = dev_provider.simulate_transfer.await_args.args[1]
    assert payload["amount"] == 5025
    assert payload["currency"] == "USD"


def test_simulate_rejects_non_positive_amount(client: TestClient, session_id: int):
    response = client.post(
        f"/v1/transfers/{session_id}/simulate",
        json={"account_id": "acc1", "beneficiary_id": "ben1", "amount": 0, "currency": "USD"},
    )
    assert response.status_code == 422


def test_execute_business_rule_maps_to_422(client: TestClient, session_id: int, dev_provider: AsyncMock):
    dev_provider.execute_transfer.side_effect = InsufficientFundsError(
        "insufficient funds", status_code=400, code="INSUFFICIENT_FUNDS"
    )

    response = client.post(
        f"/v1/transfers/{session_id}/execute",
        json={
            "account_id": "acc1",
            "beneficiary_id": "ben1",
            "amount": 50.25,
            "currency": "USD",
            "security_code": "123456",
        },
    )

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "InsufficientFundsError"
    assert detail["code"] == "INSUFFICIENT_FUNDS"


def test_movements_endpoint(client: TestClient, session_id: int, dev_provider: AsyncMock):
    dev_provider.get_account_movements.return_value = {"rows": [{"id": "mv1", "amount": 2500}]}

    response = client.get(f"/v1/accounts/{session_id}/acc1/movements")

    assert response.status_code == 200
    assert response.json() == [{"id": "mv1", "amount": 25.0}]
