"""
LiveCall Demo - Call Providers

Provider-specific implementations of outbound call dispatch.

Supported Providers:
- mock: reports success without dialing
- twilio: Twilio Programmable Voice
"""

from .base import CallDispatcher
from .factory import create_dispatcher
from .mock import MockCallDispatcher
from .twilio import TwilioCallDispatcher

__all__ = [
    "CallDispatcher",
    "MockCallDispatcher",
    "TwilioCallDispatcher",
    "create_dispatcher",
]
