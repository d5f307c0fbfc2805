"""
LiveCall Demo - Core Domain Types

Internal type definitions for the call intake flow. These are domain objects
used within the core and telephony layers, independent of API serialization.

Design Notes:
- API layer converts these to/from Pydantic schemas for external communication.
- Using dataclasses for simplicity and immutability where appropriate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union


# =============================================================================
# Enums
# =============================================================================

class DispatchStatus(str, Enum):
    """Lifecycle of an audit entry."""
    PENDING = "pending"
    CREATED = "created"
    ERROR = "error"


class FailureKind(str, Enum):
    """Why a dispatch failed."""
    CONFIGURATION = "configuration"  # operator must fix deployment
    UPSTREAM = "upstream"            # provider rejected or timed out; retryable


# =============================================================================
# Call Request
# =============================================================================

@dataclass(frozen=True)
class CallRequest:
    """
    A visitor's request for a demo call.

    Ephemeral: created per HTTP request, never persisted. `phone` is the
    normalized number once the intake has validated it.
    """
    industry_key: str
    industry_name: str
    use_case_key: str
    use_case_name: str
    phone: str


# =============================================================================
# Dispatch Results
# =============================================================================

@dataclass(frozen=True)
class DispatchSuccess:
    """Provider accepted the call."""
    provider: str
    provider_reference: Optional[str] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class DispatchFailure:
    """Provider could not place the call."""
    kind: FailureKind
    reason: str
    provider: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False


DispatchResult = Union[DispatchSuccess, DispatchFailure]


# =============================================================================
# Audit Entry
# =============================================================================

@dataclass
class AuditEntry:
    """
    Record of one call request and its dispatch outcome.

    Privacy: holds only the phone hash, never the raw or normalized number.
    Only `status`, `provider`, `provider_call_sid` and `error` change after
    creation, once, when dispatch finishes.
    """
    request_id: str
    phone_hash: str
    industry_key: str
    industry_name: str
    use_case_key: str
    use_case_name: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: DispatchStatus = DispatchStatus.PENDING
    provider: Optional[str] = None
    provider_call_sid: Optional[str] = None
    error: Optional[str] = None
    client_ip: Optional[str] = None

    def mark_created(self, provider: str, call_sid: Optional[str] = None) -> None:
        self.status = DispatchStatus.CREATED
        self.provider = provider
        self.provider_call_sid = call_sid

    def mark_error(self, error: str, provider: Optional[str] = None) -> None:
        self.status = DispatchStatus.ERROR
        self.error = error
        if provider:
            self.provider = provider

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dictionary."""
        return {
            "request_id": self.request_id,
            "created_at": self.created_at.isoformat(),
            "industry_key": self.industry_key,
            "industry_name": self.industry_name,
            "use_case_key": self.use_case_key,
            "use_case_name": self.use_case_name,
            "phone_hash": self.phone_hash,
            "status": self.status.value,
            "provider": self.provider,
            "provider_call_sid": self.provider_call_sid,
            "error": self.error,
            "client_ip": self.client_ip,
        }
