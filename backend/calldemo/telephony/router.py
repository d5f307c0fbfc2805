"""
LiveCall Demo - Telephony HTTP Endpoints

Endpoints fetched or called by the telephony provider during a call:
- GET /twiml: voice script for the answered call
- POST /api/call-status: lifecycle webhook (initiated, ringing, answered, completed)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import ValidationError as PydanticValidationError

from calldemo.api.schemas import CallStatusCallback
from calldemo.config import Settings
from calldemo.core.exceptions import InvalidBodyError
from calldemo.core.logging import LogContext, get_logger
from .voice_script import render_voice_script

logger = get_logger(__name__)

router = APIRouter(tags=["telephony"])


def get_app_settings(request: Request) -> Settings:
    """Dependency to get settings from app state."""
    return request.app.state.settings


@router.get(
    "/twiml",
    response_class=Response,
    summary="Voice script",
    description="TwiML fetched by the provider once the visitor answers.",
)
async def voice_script(
    industry_name: Optional[str] = Query(default=None, alias="industryName"),
    use_case_name: Optional[str] = Query(default=None, alias="useCaseName"),
    request_id: Optional[str] = Query(default=None, alias="requestId"),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    xml = render_voice_script(
        industry_name,
        use_case_name,
        request_id,
        voice=settings.voice_name,
        brand_name=settings.voice_brand_name,
    )
    return Response(content=xml, media_type="text/xml")


@router.post(
    "/api/call-status",
    summary="Call status webhook",
    description="Lifecycle events posted by the provider for placed calls.",
)
async def call_status(request: Request) -> dict:
    """
    Record a provider status callback in the logs.

    Supports:
    - Form-encoded body (Twilio default)
    - JSON body
    """
    content_type = request.headers.get("content-type", "")

    try:
        if "application/json" in content_type:
            body = await request.json()
        else:
            form = await request.form()
            body = dict(form)
        body = {**dict(request.query_params), **body}
        callback = CallStatusCallback.model_validate(body)
    except (ValueError, TypeError, PydanticValidationError) as e:
        logger.warning("Invalid status callback", data={"error": type(e).__name__})
        raise InvalidBodyError("Invalid status callback.")

    with LogContext(request_id=callback.request_id, call_sid=callback.call_sid):
        logger.info("Call status update", data={
            "status": callback.call_status or "unknown",
            "to": callback.to,
        })

    return {"ok": True}
