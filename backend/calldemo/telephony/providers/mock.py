"""
LiveCall Demo - Mock Call Dispatcher

Reports success without dialing. Default provider for local development
and demos without telephony credentials.
"""

import logging

from calldemo.core.types import CallRequest, DispatchResult, DispatchSuccess
from .base import CallDispatcher

logger = logging.getLogger(__name__)


class MockCallDispatcher(CallDispatcher):
    """Always succeeds; no external call occurs."""

    @property
    def name(self) -> str:
        return "mock"

    async def dispatch(self, request: CallRequest, request_id: str) -> DispatchResult:
        logger.debug(
            "Mock dispatch: industry=%s, use_case=%s",
            request.industry_key, request.use_case_key,
        )
        return DispatchSuccess(provider=self.name)
