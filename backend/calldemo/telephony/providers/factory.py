"""
LiveCall Demo - Dispatcher Factory

Selects the call dispatcher once at startup from CALL_PROVIDER_MODE.
"""

import logging
from typing import Optional

import httpx

from calldemo.config import Settings
from .base import CallDispatcher
from .mock import MockCallDispatcher
from .twilio import TwilioCallDispatcher

logger = logging.getLogger(__name__)


def create_dispatcher(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> CallDispatcher:
    """
    Factory function to create the configured CallDispatcher.

    Modes:
        - "mock": MockCallDispatcher (default)
        - "twilio": TwilioCallDispatcher

    Unknown modes fall back to mock. An incomplete Twilio configuration is
    logged here and fails each request individually.
    """
    mode = settings.provider_mode

    if mode == "twilio":
        dispatcher = TwilioCallDispatcher(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_from_number,
            twiml_url=settings.twilio_twiml_url,
            status_callback_url=settings.twilio_status_callback_url,
            base_url=settings.twilio_api_base_url,
            timeout=settings.provider_timeout_seconds,
            transport=transport,
        )
        for problem in dispatcher.configuration_problems():
            logger.warning("Twilio dispatcher misconfigured: %s", problem)
        return dispatcher

    if mode != "mock":
        logger.warning("Unknown CALL_PROVIDER_MODE=%r, falling back to mock", mode)

    return MockCallDispatcher()
