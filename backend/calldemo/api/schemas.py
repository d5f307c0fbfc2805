"""
LiveCall Demo - API Schemas

Pydantic models for request/response validation.
These define the contract between the wizard frontend and the backend.
Wire names are camelCase; Python attributes are snake_case.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ===========================================
# Call Intake Schemas
# ===========================================

class StartCallRequest(BaseModel):
    """
    Request to place a demo call.

    Every field is optional and read loosely: numbers and `true` become
    strings, anything else (`false`, lists, objects) counts as absent. Missing
    selections and bad phone numbers are then reported by the intake with
    their own messages, never as a schema error.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    industry_key: Optional[str] = Field(default=None, alias="industryKey")
    industry_name: Optional[str] = Field(default=None, alias="industryName")
    use_case_key: Optional[str] = Field(default=None, alias="useCaseKey")
    use_case_name: Optional[str] = Field(default=None, alias="useCaseName")
    phone: Optional[str] = Field(default=None, description="Phone number as entered")

    @field_validator("industry_key", "industry_name", "use_case_key", "use_case_name", "phone", mode="before")
    @classmethod
    def read_scalar(cls, value: Any) -> Optional[str]:
        if isinstance(value, bool):
            return "true" if value else None
        if isinstance(value, (str, int, float)):
            return str(value)
        return None


class StartCallResponse(BaseModel):
    """Call accepted by the provider (or the mock)."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(alias="requestId")
    provider: str = Field(description="'mock' or 'twilio'")
    call_sid: Optional[str] = Field(
        default=None,
        alias="callSid",
        description="Provider call reference, only for real providers",
    )


class ErrorResponse(BaseModel):
    """Error body shared by every failing endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: Optional[str] = Field(default=None, alias="requestId")
    error: str


# ===========================================
# Status Webhook Schemas
# ===========================================

class CallStatusCallback(BaseModel):
    """Lifecycle callback posted by the provider."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    call_sid: str = Field(alias="CallSid", min_length=1)
    call_status: Optional[str] = Field(default=None, alias="CallStatus")
    to: Optional[str] = Field(default=None, alias="To")
    request_id: Optional[str] = Field(default=None, alias="requestId")


# ===========================================
# Health Schemas
# ===========================================

class HealthResponse(BaseModel):
    """Liveness response."""
    ok: bool = True
    ts: str = Field(description="ISO 8601 UTC timestamp")
