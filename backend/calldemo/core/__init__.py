"""
LiveCall Demo - Core Package

Contains the intake logic and domain types:
- intake: call request orchestration
- types: internal domain types
- phone: normalization, validation and hashing
- audit_store: in-memory audit log
- rate_limit: per-number and per-client limits
"""

from .types import (
    AuditEntry,
    CallRequest,
    DispatchFailure,
    DispatchResult,
    DispatchStatus,
    DispatchSuccess,
    FailureKind,
)
from .phone import hash_phone, is_valid_phone, mask_phone, normalize_phone
from .audit_store import AuditStore, InMemoryAuditStore, create_audit_store

__all__ = [
    # Types
    "AuditEntry",
    "CallRequest",
    "DispatchFailure",
    "DispatchResult",
    "DispatchStatus",
    "DispatchSuccess",
    "FailureKind",
    # Phone
    "hash_phone",
    "is_valid_phone",
    "mask_phone",
    "normalize_phone",
    # Audit
    "AuditStore",
    "InMemoryAuditStore",
    "create_audit_store",
]
