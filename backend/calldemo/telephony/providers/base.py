"""
LiveCall Demo - Call Dispatcher Base

Abstract base class for outbound call providers.
"""

from abc import ABC, abstractmethod

from calldemo.core.types import CallRequest, DispatchResult


class CallDispatcher(ABC):
    """
    Abstract base class for call dispatchers.

    Implementations place (or pretend to place) one outbound call per
    request and report the outcome as a DispatchResult. They never raise
    for provider problems; failures come back as DispatchFailure.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name reported to the client."""
        ...

    @abstractmethod
    async def dispatch(self, request: CallRequest, request_id: str) -> DispatchResult:
        """
        Place an outbound demo call.

        Args:
            request: Validated call request with normalized phone
            request_id: Tracking id, forwarded to the voice script

        Returns:
            DispatchSuccess or DispatchFailure
        """
        ...

    def configuration_problems(self) -> list[str]:
        """Missing settings that will fail every dispatch. Empty when ready."""
        return []

    async def aclose(self) -> None:
        """Release network resources. Called once at shutdown."""
        return None
