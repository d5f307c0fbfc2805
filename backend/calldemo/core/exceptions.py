"""
LiveCall Demo - Exception Hierarchy

Structured exceptions for consistent error handling across the system.
Every exception maps to an HTTP status and a stable client-facing message.
"""

from typing import Dict, Optional


class CallDemoError(Exception):
    """Base exception for all LiveCall Demo errors."""

    code: str = "UNKNOWN_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        request_id: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        self.headers = headers or {}

    def to_payload(self) -> dict:
        """Client-facing JSON body. Never includes internals."""
        payload = {}
        if self.request_id:
            payload["requestId"] = self.request_id
        payload["error"] = self.message
        return payload


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(CallDemoError):
    """Input validation error."""
    code = "VALIDATION_ERROR"
    status_code = 400


class MissingSelectionError(ValidationError):
    """Industry or use case selection is absent."""
    code = "MISSING_SELECTION"


class InvalidPhoneError(ValidationError):
    """Phone number failed normalization or validation."""
    code = "INVALID_PHONE"


class InvalidBodyError(ValidationError):
    """Request body is not a usable JSON object."""
    code = "INVALID_BODY"


# =============================================================================
# Throttle Errors
# =============================================================================

class ThrottleError(CallDemoError):
    """Too many requests; retryable once the window elapses."""
    code = "THROTTLED"
    status_code = 429


class PerNumberThrottleError(ThrottleError):
    """Per-number cap exceeded."""
    code = "PER_NUMBER_THROTTLED"


class ClientRateLimitError(ThrottleError):
    """Per-client transport cap exceeded."""
    code = "CLIENT_RATE_LIMITED"


# =============================================================================
# Dispatch Errors
# =============================================================================

class ConfigurationError(CallDemoError):
    """Provider configuration is incomplete. Operator must fix deployment."""
    code = "CONFIGURATION_ERROR"
    status_code = 500


class ProviderError(CallDemoError):
    """Upstream provider rejected the call or timed out."""
    code = "PROVIDER_ERROR"
    status_code = 500


# =============================================================================
# Transport Errors
# =============================================================================

class OriginNotAllowedError(CallDemoError):
    """Cross-origin caller not in the allow list."""
    code = "ORIGIN_NOT_ALLOWED"
    status_code = 403


class PayloadTooLargeError(CallDemoError):
    """Request body exceeds the configured limit."""
    code = "PAYLOAD_TOO_LARGE"
    status_code = 413
