"""
LiveCall Demo - Twilio Call Dispatcher

Places outbound calls through the Twilio REST API (Calls resource).

The call's voice instructions are fetched by Twilio from the configured
voice-script URL; industry, use case and request id travel as query
parameters so the script can adapt to the visitor's selection.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from calldemo.core.phone import mask_phone
from calldemo.core.types import (
    CallRequest,
    DispatchFailure,
    DispatchResult,
    DispatchSuccess,
    FailureKind,
)
from .base import CallDispatcher

logger = logging.getLogger(__name__)

STATUS_CALLBACK_EVENTS = ["initiated", "ringing", "answered", "completed"]

NOT_CONFIGURED_MESSAGE = "Twilio is not configured."
MISSING_ROUTING_MESSAGE = "Missing TWILIO_FROM_NUMBER or TWILIO_TWIML_URL."


class TwilioCallDispatcher(CallDispatcher):
    """
    Twilio implementation of CallDispatcher.

    Credentials may be absent at construction; every dispatch then fails
    with a configuration error instead of crashing the application.
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        twiml_url: str,
        status_callback_url: str = "",
        base_url: str = "https://api.twilio.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            from_number: Caller id the call is placed from
            twiml_url: URL Twilio fetches for voice instructions
            status_callback_url: Optional lifecycle webhook
            base_url: Twilio API base URL
            timeout: Seconds before the API call counts as failed
            transport: Optional httpx transport (tests)
        """
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._twiml_url = twiml_url
        self._status_callback_url = status_callback_url
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def name(self) -> str:
        return "twilio"

    @property
    def has_credentials(self) -> bool:
        return bool(self._account_sid and self._auth_token)

    def configuration_problems(self) -> list[str]:
        problems = []
        if not self.has_credentials:
            problems.append(NOT_CONFIGURED_MESSAGE)
        if not self._from_number or not self._twiml_url:
            problems.append(MISSING_ROUTING_MESSAGE)
        return problems

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                auth=(self._account_sid, self._auth_token),
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def build_twiml_url(self, request: CallRequest, request_id: str) -> str:
        """Voice-script URL with the call metadata set as query parameters."""
        url = httpx.URL(self._twiml_url).copy_merge_params({
            "industryKey": request.industry_key,
            "industryName": request.industry_name,
            "useCaseKey": request.use_case_key,
            "useCaseName": request.use_case_name,
            "requestId": request_id,
        })
        return str(url)

    def build_form(self, request: CallRequest, request_id: str) -> dict:
        form: dict = {
            "To": request.phone,
            "From": self._from_number,
            "Url": self.build_twiml_url(request, request_id),
        }
        if self._status_callback_url:
            form["StatusCallback"] = self._status_callback_url
            form["StatusCallbackMethod"] = "POST"
            form["StatusCallbackEvent"] = STATUS_CALLBACK_EVENTS
        return form

    async def dispatch(self, request: CallRequest, request_id: str) -> DispatchResult:
        if not self.has_credentials:
            return DispatchFailure(FailureKind.CONFIGURATION, NOT_CONFIGURED_MESSAGE, self.name)
        if not self._from_number or not self._twiml_url:
            return DispatchFailure(FailureKind.CONFIGURATION, MISSING_ROUTING_MESSAGE, self.name)

        url = f"{self._base_url}/2010-04-01/Accounts/{self._account_sid}/Calls.json"

        logger.info("Initiating Twilio call to %s", mask_phone(request.phone))

        try:
            response = await self._get_client().post(url, data=self.build_form(request, request_id))
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            logger.error("Twilio call request timed out after %.1fs", self._timeout)
            return DispatchFailure(FailureKind.UPSTREAM, "Twilio request timed out.", self.name)
        except httpx.HTTPStatusError as e:
            error_code = None
            try:
                error_code = e.response.json().get("code")
            except ValueError:
                pass
            logger.error(
                "Twilio rejected call: status=%d, code=%s",
                e.response.status_code, error_code,
            )
            return DispatchFailure(
                FailureKind.UPSTREAM,
                f"Twilio API error: {e.response.status_code}",
                self.name,
            )
        except httpx.RequestError as e:
            logger.error("Twilio request failed: %s", type(e).__name__)
            return DispatchFailure(FailureKind.UPSTREAM, f"Twilio request failed: {e}", self.name)
        except ValueError:
            logger.error("Twilio returned a non-JSON response")
            return DispatchFailure(FailureKind.UPSTREAM, "Twilio returned an invalid response.", self.name)

        call_sid = data.get("sid") if isinstance(data, dict) else None
        if not call_sid:
            logger.error("Twilio response missing call sid")
            return DispatchFailure(FailureKind.UPSTREAM, "Twilio response missing call sid.", self.name)

        return DispatchSuccess(provider=self.name, provider_reference=call_sid)
