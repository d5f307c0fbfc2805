"""
LiveCall Demo - Telephony Module

Outbound demo calls and the voice script the provider fetches.

Components:
- providers: mock and Twilio call dispatchers
- voice_script: TwiML generation
- router: voice script and status webhook endpoints
"""

from .providers import CallDispatcher, create_dispatcher
from .voice_script import escape_xml, render_voice_script

__all__ = [
    "CallDispatcher",
    "create_dispatcher",
    "escape_xml",
    "render_voice_script",
]
