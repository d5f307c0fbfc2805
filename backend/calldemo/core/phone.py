"""
LiveCall Demo - Phone Number Utilities

Normalization, validation and privacy helpers for visitor phone numbers.

IMPORTANT:
    Raw phone numbers must NEVER be logged or stored.
    The audit store only ever sees the hash; logs only ever see the mask.
"""

import hashlib
import re
from typing import Optional

_SEPARATORS = re.compile(r"[\s\-().]")
_NON_LEADING_PLUS = re.compile(r"(?!^)\+")
_DIGITS = re.compile(r"^\d+$")

MIN_DIGITS = 8
MAX_DIGITS = 15


def normalize_phone(raw: Optional[str]) -> str:
    """
    Reduce a user-entered phone number to its canonical form.

    Examples:
        " +91 (999) 999-9999 " → +919999999999
        "1.555.123.4567"       → 15551234567
        "+1+555"               → +1555
        None                   → ""

    The result is idempotent: normalizing it again changes nothing.
    """
    if raw is None:
        return ""

    phone = str(raw).strip()
    phone = _SEPARATORS.sub("", phone)
    phone = _NON_LEADING_PLUS.sub("", phone)
    return phone


def is_valid_phone(raw: Optional[str]) -> bool:
    """
    Check whether a phone number normalizes to `+?` followed by 8-15 digits.

    Args:
        raw: Phone number as entered (normalized or not)

    Returns:
        True if the number is acceptable for dialing
    """
    phone = normalize_phone(raw)
    digits = phone[1:] if phone.startswith("+") else phone

    if not _DIGITS.match(digits):
        return False
    return MIN_DIGITS <= len(digits) <= MAX_DIGITS


def hash_phone(normalized: str, salt: str = "") -> str:
    """
    Create a one-way hash of a normalized phone number.

    Used as the throttle key and audit identity without storing the number.
    Deterministic for the same number+salt combination.

    Returns:
        SHA-256 hex digest (64 characters)
    """
    data = f"{salt}:{normalized}" if salt else normalized
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def mask_phone(raw: Optional[str], show_last_digits: int = 2) -> str:
    """
    Mask a phone number for logging.

    Examples:
        +14155551234 → ***34
        None         → unknown
    """
    if not raw:
        return "unknown"

    digits = re.sub(r"\D", "", str(raw))

    if len(digits) < show_last_digits:
        return "***"

    return f"***{digits[-show_last_digits:]}"
