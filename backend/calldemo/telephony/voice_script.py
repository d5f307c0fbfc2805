"""
LiveCall Demo - Voice Script

Generates the TwiML the provider fetches once the visitor answers.
Pure functions; every interpolated value is XML-escaped.
"""

from typing import Optional
from xml.sax.saxutils import escape

DEFAULT_INDUSTRY = "your industry"
DEFAULT_USE_CASE = "your workflow"

_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(value: object) -> str:
    """Escape the five XML special characters: & < > " '"""
    return escape(str(value), _ENTITIES)


def render_voice_script(
    industry_name: Optional[str],
    use_case_name: Optional[str],
    request_id: Optional[str],
    voice: str = "alice",
    brand_name: str = "Gnani AI",
) -> str:
    """
    Build the three-line demo script.

    Args:
        industry_name: Selected industry (falls back to "your industry")
        use_case_name: Selected use case (falls back to "your workflow")
        request_id: Reference id read back to the caller
        voice: TwiML <Say> voice
        brand_name: Name announced in the greeting

    Returns:
        TwiML document as a string
    """
    industry = escape_xml(industry_name or DEFAULT_INDUSTRY)
    use_case = escape_xml(use_case_name or DEFAULT_USE_CASE)
    reference = escape_xml(request_id or "")
    voice_attr = escape_xml(voice)
    brand = escape_xml(brand_name)

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<Response>
  <Say voice="{voice_attr}">Hello. This is {brand}. You selected {industry} and {use_case}.</Say>
  <Pause length="1"/>
  <Say voice="{voice_attr}">This is a demo call. In production, the agent would run the full workflow using your systems and policies.</Say>
  <Pause length="1"/>
  <Say voice="{voice_attr}">Reference ID {reference}. Thank you.</Say>
</Response>"""
