"""
otpgate/schemas/otp.py

Pydantic models for the /otp endpoints.
Fields are optional at the schema level so that a missing phone or code
is reported with the same short message the clients already expect.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Any


def _as_text(v: Any) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class SendOTPRequest(BaseModel):
    """Request schema for code issuance."""

    phone: Optional[str] = Field(default=None, description="Phone number in any supported regional format")

    @field_validator("phone", mode="before")
    @classmethod
    def coerce_phone(cls, v: Any) -> Optional[str]:
        return _as_text(v)


class SendOTPResponse(BaseModel):
    """Response schema for code issuance."""

    success: bool = Field(..., description="Whether the code was sent")
    message: str = Field(..., description="Human-readable status")
    code: Optional[str] = Field(default=None, description="Issued code (diagnostic mode only)")


class VerifyOTPRequest(BaseModel):
    """Request schema for code verification."""

    phone: Optional[str] = Field(default=None, description="Phone number the code was sent to")
    code: Optional[str] = Field(default=None, description="Six-digit verification code")

    @field_validator("phone", "code", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        return _as_text(v)


class VerifyOTPResponse(BaseModel):
    """Response schema for code verification."""

    success: bool = Field(..., description="Whether the code was accepted")
    message: str = Field(..., description="Human-readable status")
