"""
Tests for the HTTP API: routing, authentication, status codes and response
shapes.
"""
from uuid import uuid4

import pytest

from finops.api.dependencies import require_role
from finops.models.user import UserRole, UserSummary
from finops.repositories.operation_repository import OperationRepository
from finops.services.exceptions import PermissionDenied
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD


def create_operation(client, headers, op_type="BUY", amount="100.00", currency="USD"):
    return client.post(
        "/api/operations",
        json={"type": op_type, "amount": amount, "currency": currency},
        headers=headers
    )


class TestServiceEndpoints:

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["message"] == "Server is running"
        assert "timestamp" in data

    def test_request_id_header(self, client):
        response = client.get("/api/health")

        assert response.headers["X-Request-ID"]
        assert float(response.headers["X-Process-Time"]) >= 0

    def test_unknown_route(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json()["requestId"] == response.headers["X-Request-ID"]

    def test_metrics_for_admin(self, client, admin_headers):
        create_operation(client, admin_headers)

        response = client.get("/api/metrics", headers=admin_headers)

        assert response.status_code == 200
        counters = response.json()["metrics"]["counters"]
        assert counters["operations_created[type=BUY]"] == 1
        assert counters["successful_logins"] == 1

    def test_request_timers_keyed_by_route_template(self, client, admin_headers):
        for i in range(300):
            assert client.get(f"/nope/{i}").status_code == 404
        client.get("/api/operations/stats", headers=admin_headers)

        timers = client.app.state.container.metrics.timers
        assert len(timers) < 10
        assert "http_request_duration_seconds[endpoint=unmatched,method=GET,status_code=404]" in timers
        assert (
            "http_request_duration_seconds[endpoint=/api/operations/stats,method=GET,status_code=200]"
            in timers
        )

    def test_unknown_methods_share_one_tag(self, client):
        for method in ("FOO", "BAR", "BAZ"):
            client.request(method, "/api/health")

        keys = [key for key in client.app.state.container.metrics.timers if "method=OTHER" in key]
        assert len(keys) == 1

    def test_metrics_requires_token(self, client):
        assert client.get("/api/metrics").status_code == 401

    def test_metrics_role_check(self):
        checker = require_role(UserRole.ADMIN)
        user = UserSummary(id=uuid4(), email="u@example.com", role=UserRole.USER)

        with pytest.raises(PermissionDenied) as exc_info:
            checker(current_user=user)
        assert exc_info.value.message == "Insufficient permissions. Required role: admin"


class TestSetupEndpoints:

    def test_status_before_and_after_setup(self, client):
        response = client.get("/api/setup/status")
        assert response.status_code == 200
        assert response.json() == {"needsSetup": True, "userCount": 0, "environment": "testing"}

        client.post("/api/setup/admin", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})

        response = client.get("/api/setup/status")
        assert response.json()["needsSetup"] is False
        assert response.json()["userCount"] == 1

    def test_create_admin(self, client):
        response = client.post(
            "/api/setup/admin", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Admin user created successfully"
        assert data["user"]["email"] == ADMIN_EMAIL
        assert data["user"]["role"] == "admin"
        assert "password" not in data["user"]

    def test_create_admin_missing_fields(self, client):
        response = client.post("/api/setup/admin", json={"email": ADMIN_EMAIL})

        assert response.status_code == 400
        assert response.json()["details"] == "Email and password are required"

    def test_create_admin_duplicate(self, client, admin_headers):
        response = client.post(
            "/api/setup/admin", json={"email": ADMIN_EMAIL, "password": "another"}
        )

        assert response.status_code == 400
        assert response.json()["details"] == "User with this email already exists"


class TestLoginEndpoint:

    def test_login_success(self, client, admin_headers):
        response = client.post(
            "/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token"]
        assert data["user"]["email"] == ADMIN_EMAIL
        assert data["user"]["role"] == "admin"

    def test_wrong_password(self, client, admin_headers):
        response = client.post(
            "/api/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    def test_unknown_email_matches_wrong_password(self, client, admin_headers):
        response = client.post(
            "/api/auth/login", json={"email": "ghost@app.com", "password": ADMIN_PASSWORD}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password"

    @pytest.mark.parametrize("body", [
        {"email": "not-an-email", "password": "x"},
        {"email": ADMIN_EMAIL, "password": ""},
        {"email": ADMIN_EMAIL},
    ])
    def test_malformed_body(self, client, body):
        response = client.post("/api/auth/login", json=body)

        assert response.status_code == 400
        assert response.json()["message"] == "Validation error"


class TestCreateOperationEndpoint:

    def test_create(self, client, admin_headers):
        response = create_operation(client, admin_headers, "BUY", "100.5", "usd")

        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "BUY"
        assert data["amount"] == "100.50"
        assert data["currency"] == "USD"
        assert data["userId"]
        assert data["createdAt"]

    def test_numeric_amount(self, client, admin_headers):
        response = create_operation(client, admin_headers, "SELL", 42, "EUR")

        assert response.status_code == 201
        assert response.json()["amount"] == "42.00"

    def test_requires_token(self, client):
        response = create_operation(client, {})

        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_rejects_bad_token(self, client):
        response = create_operation(client, {"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.parametrize("op_type,amount,currency", [
        ("BUY", "-5", "USD"),
        ("BUY", "abc", "USD"),
        ("HOLD", "10", "USD"),
        ("BUY", "10", "US"),
    ])
    def test_malformed_body(self, client, admin_headers, op_type, amount, currency):
        response = create_operation(client, admin_headers, op_type, amount, currency)

        assert response.status_code == 400
        assert response.json()["message"] == "Validation error"

    def test_rule_validation_failure(self, client, admin_headers):
        response = create_operation(client, admin_headers, "BUY", "10", "XYZ")

        assert response.status_code == 400
        data = response.json()
        assert data["message"] == "Validation failed"
        assert data["details"] == "Invalid currency code: XYZ"
        assert data["requestId"]

    def test_precision_failure(self, client, admin_headers):
        response = create_operation(client, admin_headers, "BUY", "10.123", "USD")

        assert response.status_code == 400
        assert response.json()["details"] == "Invalid amount precision for currency USD"

    def test_single_amount_limit(self, client, admin_headers):
        response = create_operation(client, admin_headers, "BUY", "10000.01", "USD")

        assert response.status_code == 422
        assert response.json()["message"] == "Business rule violation"

    def test_operation_count_limit(self, client, admin_headers):
        for _ in range(10):
            assert create_operation(client, admin_headers).status_code == 201

        response = create_operation(client, admin_headers)

        assert response.status_code == 422
        assert response.json()["details"] == "Daily operation limit exceeded (10 operations per day)"

    def test_transaction_failure_is_redacted(self, client, admin_headers, monkeypatch):
        async def failing_add(self, *args, **kwargs):
            raise RuntimeError("constraint exploded")

        monkeypatch.setattr(OperationRepository, "add", failing_add)

        response = create_operation(client, admin_headers)

        assert response.status_code == 500
        assert response.json()["message"] == "Transaction failed"
        assert response.json()["details"] == "Internal server error"


class TestListOperationsEndpoint:

    def test_list_with_pagination(self, client, admin_headers):
        for amount in ("1", "2", "3"):
            create_operation(client, admin_headers, "BUY", amount, "USD")

        response = client.get("/api/operations?page=1&limit=2", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["page"] == 1
        assert data["limit"] == 2
        assert [op["amount"] for op in data["operations"]] == ["3.00", "2.00"]

    def test_filters(self, client, admin_headers):
        create_operation(client, admin_headers, "BUY", "10", "USD")
        create_operation(client, admin_headers, "SELL", "20", "EUR")
        create_operation(client, admin_headers, "BUY", "0.5", "BTC")

        by_type = client.get("/api/operations?type=SELL", headers=admin_headers).json()
        by_currency = client.get("/api/operations?currency=BTC", headers=admin_headers).json()
        everything = client.get(
            "/api/operations?type=all-types&currency=all-currencies", headers=admin_headers
        ).json()
        searched = client.get("/api/operations?search=eur", headers=admin_headers).json()

        assert by_type["total"] == 1
        assert by_type["operations"][0]["type"] == "SELL"
        assert by_currency["total"] == 1
        assert everything["total"] == 3
        assert searched["total"] == 1
        assert searched["operations"][0]["currency"] == "EUR"

    @pytest.mark.parametrize("query", ["page=0", "limit=0", "limit=101"])
    def test_invalid_pagination(self, client, admin_headers, query):
        response = client.get(f"/api/operations?{query}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["details"] == "Invalid pagination parameters"

    def test_non_numeric_page(self, client, admin_headers):
        response = client.get("/api/operations?page=abc", headers=admin_headers)

        assert response.status_code == 400

    def test_requires_token(self, client):
        assert client.get("/api/operations").status_code == 401


class TestStatsEndpoint:

    def test_stats(self, client, admin_headers):
        create_operation(client, admin_headers, "BUY", "10", "USD")
        create_operation(client, admin_headers, "BUY", "11", "USD")
        create_operation(client, admin_headers, "SELL", "12", "USD")

        response = client.get("/api/operations/stats", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"total": 3, "buys": 2, "sells": 1}

    def test_requires_token(self, client):
        assert client.get("/api/operations/stats").status_code == 401
