"""
LiveCall Demo - Backend Application Package

This package contains the demo-call backend:
- API routes for call intake and health
- Intake orchestration, throttling and the audit store
- Call dispatchers for mock and Twilio providers
- Voice script generation
"""

__version__ = "0.1.0"
