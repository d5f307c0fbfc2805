"""
LiveCall Demo - REST API Routes

Call intake endpoint consumed by the wizard frontend.

Architecture:
    All call requests flow through the CallIntakeService, accessed via
    dependency injection from app.state. The route only translates between
    the wire schema and the service.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from calldemo.core.exceptions import ClientRateLimitError
from calldemo.core.intake import CallIntakeService
from calldemo.core.rate_limit import CLIENT_LIMIT_MESSAGE, FixedWindowRateLimiter

from .schemas import ErrorResponse, StartCallRequest, StartCallResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calls"])


# =============================================================================
# Dependencies
# =============================================================================

def get_intake_service(request: Request) -> CallIntakeService:
    """Dependency to get the intake service from app state."""
    return request.app.state.intake


def get_client_limiter(request: Request) -> FixedWindowRateLimiter:
    """Dependency to get the transport rate limiter from app state."""
    return request.app.state.client_limiter


def client_ip(request: Request) -> Optional[str]:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


async def enforce_client_rate_limit(
    request: Request,
    response: Response,
    limiter: FixedWindowRateLimiter = Depends(get_client_limiter),
) -> None:
    """Per-client fixed window cap, keyed on the socket peer address."""
    if not limiter.enabled:
        return

    key = request.client.host if request.client else "unknown"
    decision = limiter.hit(key)

    if not decision.allowed:
        logger.warning("Client rate limit exceeded: retry in %ds", decision.reset_seconds)
        raise ClientRateLimitError(CLIENT_LIMIT_MESSAGE, headers=decision.headers())

    response.headers.update(decision.headers())


# =============================================================================
# Call Intake
# =============================================================================

@router.post(
    "/start-call",
    response_model=StartCallResponse,
    response_model_exclude_none=True,
    summary="Request a demo call",
    description="Validate the selection and phone number, then place an outbound demo call.",
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    dependencies=[Depends(enforce_client_rate_limit)],
)
async def start_call(
    request: Request,
    payload: Optional[StartCallRequest] = None,
    intake: CallIntakeService = Depends(get_intake_service),
) -> StartCallResponse:
    """
    Place a demo call.

    Returns requestId and provider; callSid is included for real providers.
    Failures are raised as CallDemoError subclasses and rendered by the
    application's exception handler.
    """
    payload = payload or StartCallRequest()

    result = await intake.start_call(
        industry_key=payload.industry_key,
        industry_name=payload.industry_name,
        use_case_key=payload.use_case_key,
        use_case_name=payload.use_case_name,
        phone=payload.phone,
        client_ip=client_ip(request),
    )

    return StartCallResponse(
        request_id=result.request_id,
        provider=result.provider,
        call_sid=result.call_sid,
    )
