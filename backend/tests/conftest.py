"""
LiveCall Demo - Test Configuration and Fixtures

Shared fixtures for all test modules.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient

# Ensure backend package is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from calldemo.config import Settings
from calldemo.core.audit_store import InMemoryAuditStore
from calldemo.core.intake import CallIntakeService
from calldemo.core.types import CallRequest
from calldemo.telephony.providers import MockCallDispatcher, TwilioCallDispatcher


# =============================================================================
# Settings Fixtures
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """
    Create test settings with safe defaults.

    Mock provider, permissive client limit so only the per-number cap bites.
    """
    return Settings(
        _env_file=None,
        app_env="testing",
        app_debug=True,
        app_log_level="WARNING",  # Reduce noise in tests
        call_provider_mode="mock",
        cors_allow_origins="",
        rate_limit_per_minute=100,
        per_number_per_minute=2,
    )


@pytest.fixture
def twilio_settings() -> Settings:
    """Settings for a fully configured Twilio dispatcher."""
    return Settings(
        _env_file=None,
        app_env="testing",
        app_log_level="WARNING",
        call_provider_mode="twilio",
        rate_limit_per_minute=100,
        twilio_account_sid="AC00000000000000000000000000000000",
        twilio_auth_token="secret-token",
        twilio_from_number="+15550001111",
        twilio_twiml_url="https://demo.example.com/twiml",
        twilio_status_callback_url="https://demo.example.com/api/call-status",
    )


# =============================================================================
# Clock Fixtures
# =============================================================================

class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# Store & Dispatcher Fixtures
# =============================================================================

@pytest.fixture
def audit_store() -> InMemoryAuditStore:
    """Create a fresh in-memory audit store."""
    return InMemoryAuditStore(max_entries=100, retention_seconds=60)


@pytest.fixture
def mock_dispatcher() -> MockCallDispatcher:
    return MockCallDispatcher()


@pytest.fixture
def intake(
    audit_store: InMemoryAuditStore,
    mock_dispatcher: MockCallDispatcher,
    clock: FakeClock,
) -> CallIntakeService:
    """Intake service with mock dispatcher and a controllable clock."""
    return CallIntakeService(
        store=audit_store,
        dispatcher=mock_dispatcher,
        per_number_limit=2,
        per_number_window_seconds=60,
        clock=clock,
    )


@pytest.fixture
def make_twilio_dispatcher() -> Callable[..., TwilioCallDispatcher]:
    """
    Build a TwilioCallDispatcher whose HTTP traffic goes to a handler.

    Usage:
        dispatcher = make_twilio_dispatcher(handler)
        dispatcher = make_twilio_dispatcher(handler, from_number="")
    """
    def _make(handler: Callable[[httpx.Request], httpx.Response], **overrides) -> TwilioCallDispatcher:
        options = dict(
            account_sid="AC00000000000000000000000000000000",
            auth_token="secret-token",
            from_number="+15550001111",
            twiml_url="https://demo.example.com/twiml",
            status_callback_url="https://demo.example.com/api/call-status",
            timeout=10.0,
        )
        options.update(overrides)
        return TwilioCallDispatcher(transport=httpx.MockTransport(handler), **options)

    return _make


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def call_request() -> CallRequest:
    return CallRequest(
        industry_key="bfsi",
        industry_name="BFSI",
        use_case_key="collections",
        use_case_name="EMI reminders and collections",
        phone="+919999999999",
    )


@pytest.fixture
def start_call_body() -> dict:
    """Valid /api/start-call body."""
    return {
        "industryKey": "insurance",
        "industryName": "Insurance",
        "useCaseKey": "claims_intake",
        "useCaseName": "Claims intake",
        "phone": "+91 99999 99999",
    }


# =============================================================================
# FastAPI App Fixtures
# =============================================================================

@pytest.fixture
def app(test_settings: Settings):
    """Create a FastAPI app instance in mock mode."""
    # Import here to avoid circular imports
    from main import create_app
    return create_app(test_settings)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as c:
        yield c
