"""
LiveCall Demo - Call Intake Orchestrator

Single entry point for demo call requests, shared by the REST route and
tests. Stages:

    1. VALIDATE: selections present, phone normalizes to a dialable number
    2. THROTTLE: per-number cap over the audit store
    3. RECORD: append an audit entry (phone hash only)
    4. DISPATCH: hand off to the configured CallDispatcher
    5. FINALIZE: mark the entry created/error, return or raise

Every outcome, including validation failures, carries a request id so the
visitor can quote it.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from calldemo.config import Settings
from calldemo.core.audit_store import AuditStore, create_audit_store
from calldemo.core.exceptions import (
    ConfigurationError,
    InvalidPhoneError,
    MissingSelectionError,
    ProviderError,
)
from calldemo.core.logging import LogContext, get_logger
from calldemo.core.phone import hash_phone, is_valid_phone, normalize_phone
from calldemo.core.rate_limit import PerNumberThrottle
from calldemo.core.types import AuditEntry, CallRequest, DispatchFailure, FailureKind
from calldemo.telephony.providers import CallDispatcher, create_dispatcher

logger = get_logger(__name__)

MISSING_SELECTION_MESSAGE = "Missing industry or use case."
INVALID_PHONE_MESSAGE = "Invalid phone number."
PROVIDER_ERROR_MESSAGE = "Call provider error."


def generate_request_id() -> str:
    """Random 20-character hex tracking id."""
    return secrets.token_hex(10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IntakeResult:
    """Successful intake outcome returned to the API layer."""
    request_id: str
    provider: str
    call_sid: Optional[str] = None


class CallIntakeService:
    """
    Validates, throttles, records and dispatches demo call requests.

    Collaborators are injected so tests can swap the store, the dispatcher
    and the clock.
    """

    def __init__(
        self,
        store: AuditStore,
        dispatcher: CallDispatcher,
        per_number_limit: int = 2,
        per_number_window_seconds: int = 60,
        phone_hash_salt: str = "",
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = generate_request_id,
    ):
        self._store = store
        self._dispatcher = dispatcher
        self._throttle = PerNumberThrottle(store, per_number_limit, per_number_window_seconds)
        self._salt = phone_hash_salt
        self._clock = clock
        self._id_factory = id_factory

    @property
    def store(self) -> AuditStore:
        return self._store

    @property
    def dispatcher(self) -> CallDispatcher:
        return self._dispatcher

    async def start_call(
        self,
        industry_key: Optional[str],
        industry_name: Optional[str],
        use_case_key: Optional[str],
        use_case_name: Optional[str],
        phone: Optional[str],
        client_ip: Optional[str] = None,
    ) -> IntakeResult:
        """
        Run one call request through the intake stages.

        Raises:
            MissingSelectionError: any selection field absent or blank
            InvalidPhoneError: phone fails normalization/validation
            PerNumberThrottleError: number over its per-window cap
            ConfigurationError: provider settings incomplete
            ProviderError: provider rejected the call or timed out
        """
        request_id = self._id_factory()

        with LogContext(request_id=request_id):
            selections = (industry_key, industry_name, use_case_key, use_case_name)
            if any(not value or not value.strip() for value in selections):
                logger.info("Rejected call request: missing selection")
                raise MissingSelectionError(MISSING_SELECTION_MESSAGE, request_id=request_id)

            normalized = normalize_phone(phone)
            if not normalized or not is_valid_phone(normalized):
                logger.info("Rejected call request: invalid phone", data={"phone": normalized})
                raise InvalidPhoneError(INVALID_PHONE_MESSAGE, request_id=request_id)

            phone_hash = hash_phone(normalized, self._salt)
            now = self._clock()

            # In-memory store calls never yield, so check + append is atomic.
            await self._throttle.check(phone_hash, now, request_id=request_id)

            entry = AuditEntry(
                request_id=request_id,
                phone_hash=phone_hash,
                industry_key=industry_key,
                industry_name=industry_name,
                use_case_key=use_case_key,
                use_case_name=use_case_name,
                created_at=now,
                client_ip=client_ip,
            )
            await self._store.append(entry)

            call_request = CallRequest(
                industry_key=industry_key,
                industry_name=industry_name,
                use_case_key=use_case_key,
                use_case_name=use_case_name,
                phone=normalized,
            )

            logger.info("Dispatching call", data={
                "provider": self._dispatcher.name,
                "industry": industry_key,
                "use_case": use_case_key,
                "phone": normalized,
            })

            try:
                result = await self._dispatcher.dispatch(call_request, request_id)
            except Exception as e:
                entry.mark_error(str(e), provider=self._dispatcher.name)
                logger.exception("Dispatcher raised unexpectedly", data={"provider": self._dispatcher.name})
                raise ProviderError(PROVIDER_ERROR_MESSAGE, request_id=request_id) from e

            if isinstance(result, DispatchFailure):
                entry.mark_error(result.reason, provider=result.provider or self._dispatcher.name)
                if result.kind == FailureKind.CONFIGURATION:
                    logger.error("Call not placed, configuration error", data={"reason": result.reason})
                    raise ConfigurationError(result.reason, request_id=request_id)
                logger.warning("Call not placed, provider error", data={"reason": result.reason})
                raise ProviderError(PROVIDER_ERROR_MESSAGE, request_id=request_id)

            entry.mark_created(result.provider, result.provider_reference)
            logger.info("Call created", data={"provider": result.provider})

            return IntakeResult(
                request_id=request_id,
                provider=result.provider,
                call_sid=result.provider_reference,
            )


def create_intake_service(
    settings: Settings,
    store: Optional[AuditStore] = None,
    dispatcher: Optional[CallDispatcher] = None,
) -> CallIntakeService:
    """
    Factory function to create a configured CallIntakeService.

    Args:
        settings: Application settings
        store: Optional audit store (default: create from settings)
        dispatcher: Optional dispatcher (default: create from settings)
    """
    return CallIntakeService(
        store=store if store is not None else create_audit_store(settings),
        dispatcher=dispatcher if dispatcher is not None else create_dispatcher(settings),
        per_number_limit=settings.per_number_per_minute,
        per_number_window_seconds=settings.per_number_window_seconds,
        phone_hash_salt=settings.phone_hash_salt,
    )
