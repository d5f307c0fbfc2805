"""
LiveCall Demo - API Endpoint Tests

Tests for REST endpoints using FastAPI TestClient.
These tests verify:
- Health endpoint
- Call intake endpoint (mock and Twilio modes)
- Voice script endpoint
- Status webhook
- Transport limits, origin policy and security headers

Run with: pytest tests/test_api_endpoints.py -v
"""

from datetime import datetime
from typing import Generator

import httpx
import pytest
from fastapi.testclient import TestClient

from calldemo.config import Settings
from calldemo.core.intake import create_intake_service
from calldemo.core.phone import hash_phone
from calldemo.telephony.providers import create_dispatcher


def with_overrides(settings: Settings, **overrides) -> Settings:
    return settings.model_copy(update=overrides)


@pytest.fixture
def make_client():
    """Build a TestClient for custom settings; closes every client it made."""
    from main import create_app

    clients = []

    def _make(settings: Settings) -> TestClient:
        client = TestClient(create_app(settings))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_returns_ok(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["ok"] is True

    def test_health_timestamp_is_iso8601(self, client: TestClient):
        ts = client.get("/health").json()["ts"]

        assert ts.endswith("Z")
        parsed = datetime.fromisoformat(ts.replace("Z", "+00:00"))
        assert parsed.tzinfo is not None


class TestRootEndpoint:

    def test_root_returns_service_info(self, client: TestClient):
        data = client.get("/").json()

        assert data["service"] == "LiveCall Demo"
        assert data["status"] == "operational"


class TestStartCallMock:
    """Tests for POST /api/start-call in mock mode."""

    def test_success(self, client: TestClient, start_call_body: dict):
        response = client.post("/api/start-call", json=start_call_body)

        assert response.status_code == 200
        data = response.json()
        assert data["provider"] == "mock"
        assert len(data["requestId"]) == 20
        assert "callSid" not in data

    def test_distinct_phones_get_unique_ids(self, client: TestClient, start_call_body: dict):
        request_ids = set()
        for i in range(5):
            body = {**start_call_body, "phone": f"+1555000000{i}"}
            response = client.post("/api/start-call", json=body)

            assert response.status_code == 200
            assert response.json()["provider"] == "mock"
            request_ids.add(response.json()["requestId"])

        assert len(request_ids) == 5
        assert all(request_ids)

    def test_missing_industry_key(self, client: TestClient, start_call_body: dict):
        body = {k: v for k, v in start_call_body.items() if k != "industryKey"}
        response = client.post("/api/start-call", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Missing industry or use case."
        assert data["requestId"]

    def test_empty_body_is_missing_selection(self, client: TestClient):
        response = client.post("/api/start-call", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing industry or use case."

    @pytest.mark.parametrize("phone", ["123", "abc12345678", "12345678901234567", ""])
    def test_invalid_phone(self, client: TestClient, start_call_body: dict, phone: str):
        response = client.post("/api/start-call", json={**start_call_body, "phone": phone})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid phone number."
        assert response.json()["requestId"]

    def test_numeric_phone_accepted(self, client: TestClient, start_call_body: dict):
        response = client.post("/api/start-call", json={**start_call_body, "phone": 15551234567})
        assert response.status_code == 200

    def test_missing_selection_reported_despite_non_string_phone(self, client: TestClient):
        body = {"industryName": "I", "useCaseKey": "u", "useCaseName": "U", "phone": ["+919999999999"]}

        response = client.post("/api/start-call", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing industry or use case."
        assert response.json()["requestId"]

    def test_boolean_selection_accepted(self, client: TestClient, start_call_body: dict):
        response = client.post("/api/start-call", json={**start_call_body, "industryKey": True})
        assert response.status_code == 200

    @pytest.mark.parametrize("phone", [["+919999999999"], {"number": "+919999999999"}, False])
    def test_non_scalar_phone_is_invalid_phone(self, client: TestClient, start_call_body: dict, phone):
        response = client.post("/api/start-call", json={**start_call_body, "phone": phone})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid phone number."

    def test_non_object_body_is_invalid(self, client: TestClient):
        response = client.post("/api/start-call", json=["industryKey"])

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body."

    def test_malformed_json(self, client: TestClient):
        response = client.post(
            "/api/start-call",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request body."
        assert response.json()["requestId"]

    def test_per_number_throttle(self, make_client, test_settings: Settings, start_call_body: dict):
        client = make_client(with_overrides(test_settings, per_number_per_minute=1))

        first = client.post("/api/start-call", json=start_call_body)
        second = client.post("/api/start-call", json={**start_call_body, "phone": "+919999999999"})

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json()["error"] == "Too many requests for this number. Retry shortly."
        assert second.json()["requestId"]

    def test_throttle_is_per_number(self, make_client, test_settings: Settings, start_call_body: dict):
        client = make_client(with_overrides(test_settings, per_number_per_minute=1))

        client.post("/api/start-call", json=start_call_body)
        other = client.post("/api/start-call", json={**start_call_body, "phone": "+15550009999"})

        assert other.status_code == 200

    def test_audit_entry_recorded(self, client: TestClient, start_call_body: dict):
        import asyncio

        request_id = client.post("/api/start-call", json=start_call_body).json()["requestId"]
        store = client.app.state.intake.store
        entry = asyncio.run(store.get(request_id))

        assert entry.status.value == "created"
        assert entry.client_ip == "testclient"
        assert entry.phone_hash == hash_phone("+919999999999")
        assert "+919999999999" not in entry.to_dict().values()

    def test_forwarded_for_recorded(self, client: TestClient, start_call_body: dict):
        import asyncio

        response = client.post(
            "/api/start-call",
            json=start_call_body,
            headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        )
        entry = asyncio.run(client.app.state.intake.store.get(response.json()["requestId"]))

        assert entry.client_ip == "203.0.113.7"


class TestClientRateLimit:
    """Tests for the per-client transport limiter."""

    def test_cap_returns_429(self, make_client, test_settings: Settings, start_call_body: dict):
        client = make_client(with_overrides(test_settings, rate_limit_per_minute=2, per_number_per_minute=10))

        statuses = [
            client.post("/api/start-call", json={**start_call_body, "phone": f"+1555000000{i}"}).status_code
            for i in range(3)
        ]

        assert statuses == [200, 200, 429]

    def test_limited_response_shape(self, make_client, test_settings: Settings, start_call_body: dict):
        client = make_client(with_overrides(test_settings, rate_limit_per_minute=1))
        client.post("/api/start-call", json=start_call_body)

        response = client.post("/api/start-call", json=start_call_body)

        assert response.status_code == 429
        assert response.json() == {"error": "Too many requests, please try again later."}
        assert "Retry-After" in response.headers
        assert response.headers["RateLimit-Remaining"] == "0"

    def test_allowed_response_has_headers(self, client: TestClient, start_call_body: dict):
        response = client.post("/api/start-call", json=start_call_body)

        assert response.headers["RateLimit-Limit"] == "100"
        assert response.headers["RateLimit-Remaining"] == "99"

    def test_limit_counts_rejected_requests(self, make_client, test_settings: Settings):
        client = make_client(with_overrides(test_settings, rate_limit_per_minute=1))
        client.post("/api/start-call", json={})

        assert client.post("/api/start-call", json={}).status_code == 429

    def test_other_endpoints_unlimited(self, make_client, test_settings: Settings):
        client = make_client(with_overrides(test_settings, rate_limit_per_minute=1))

        assert all(client.get("/health").status_code == 200 for _ in range(3))


class TestStartCallTwilio:
    """Tests for POST /api/start-call with the Twilio dispatcher."""

    @pytest.fixture
    def twilio_client(self, twilio_settings: Settings) -> Generator[TestClient, None, None]:
        from main import create_app

        def handler(request: httpx.Request) -> httpx.Response:
            if "+15550000000" in request.content.decode().replace("%2B", "+"):
                return httpx.Response(400, json={"code": 21211})
            return httpx.Response(201, json={"sid": "CA0123456789", "status": "queued"})

        app = create_app(twilio_settings)
        app.state.intake = create_intake_service(
            twilio_settings,
            dispatcher=create_dispatcher(twilio_settings, transport=httpx.MockTransport(handler)),
        )
        with TestClient(app) as c:
            yield c

    def test_success_includes_call_sid(self, twilio_client: TestClient, start_call_body: dict):
        response = twilio_client.post("/api/start-call", json=start_call_body)

        assert response.status_code == 200
        data = response.json()
        assert data["provider"] == "twilio"
        assert data["callSid"] == "CA0123456789"

    def test_upstream_error(self, twilio_client: TestClient, start_call_body: dict):
        response = twilio_client.post("/api/start-call", json={**start_call_body, "phone": "+15550000000"})

        assert response.status_code == 500
        assert response.json()["error"] == "Call provider error."
        assert response.json()["requestId"]

    def test_missing_configuration(self, make_client, twilio_settings: Settings, start_call_body: dict):
        client = make_client(with_overrides(twilio_settings, twilio_from_number=""))

        response = client.post("/api/start-call", json=start_call_body)

        assert response.status_code == 500
        assert response.json()["error"] == "Missing TWILIO_FROM_NUMBER or TWILIO_TWIML_URL."

    def test_missing_credentials(self, make_client, twilio_settings: Settings, start_call_body: dict):
        client = make_client(with_overrides(twilio_settings, twilio_account_sid=""))

        response = client.post("/api/start-call", json=start_call_body)

        assert response.status_code == 500
        assert response.json()["error"] == "Twilio is not configured."


class TestVoiceScriptEndpoint:

    def test_escapes_industry_name(self, client: TestClient):
        response = client.get("/twiml", params={"industryName": "A&B", "useCaseName": "KYC", "requestId": "r1"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert "A&amp;B" in response.text
        assert "A&B" not in response.text

    def test_defaults(self, client: TestClient):
        response = client.get("/twiml")

        assert "your industry" in response.text
        assert "your workflow" in response.text


class TestCallStatusWebhook:

    def test_form_callback(self, client: TestClient):
        response = client.post(
            "/api/call-status",
            data={"CallSid": "CA0123456789", "CallStatus": "ringing"},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_json_callback(self, client: TestClient):
        response = client.post("/api/call-status", json={"CallSid": "CA1", "CallStatus": "completed"})
        assert response.status_code == 200

    def test_missing_call_sid(self, client: TestClient):
        response = client.post("/api/call-status", data={"CallStatus": "ringing"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid status callback."


class TestTransportPolicy:
    """Origin policy, body limit and security headers."""

    def test_disallowed_origin_rejected(self, make_client, test_settings: Settings, start_call_body: dict):
        client = make_client(with_overrides(test_settings, cors_allow_origins="https://demo.example.com"))

        response = client.post(
            "/api/start-call",
            json=start_call_body,
            headers={"Origin": "https://evil.example.com"},
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Origin not allowed."}

    def test_allowed_origin_passes(self, make_client, test_settings: Settings, start_call_body: dict):
        client = make_client(with_overrides(test_settings, cors_allow_origins="https://demo.example.com"))

        response = client.post(
            "/api/start-call",
            json=start_call_body,
            headers={"Origin": "https://demo.example.com"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "https://demo.example.com"

    def test_empty_allow_list_allows_any_origin(self, client: TestClient, start_call_body: dict):
        response = client.post(
            "/api/start-call",
            json=start_call_body,
            headers={"Origin": "https://anywhere.example.com"},
        )

        assert response.status_code == 200

    def test_oversized_body_rejected(self, make_client, test_settings: Settings):
        client = make_client(with_overrides(test_settings, max_body_bytes=100))

        response = client.post("/api/start-call", json={"phone": "1" * 500})

        assert response.status_code == 413

    def test_security_headers(self, client: TestClient):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"

    def test_unexpected_error_is_bare_500_with_headers(self, make_client, test_settings: Settings):
        client = make_client(test_settings)

        async def explode():
            raise RuntimeError("secret internals")

        client.app.add_api_route("/explode", explode)

        response = client.get("/explode", headers={"Origin": "https://anywhere.example.com"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error."}
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["access-control-allow-origin"] == "*"

    def test_nonexistent_endpoint(self, client: TestClient):
        assert client.get("/api/nonexistent").status_code == 404
