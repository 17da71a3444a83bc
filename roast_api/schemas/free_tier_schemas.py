"""Schemas for free tier functionality"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from roast_api.services.identity_service import normalize_email


class FreeTierEmailRequest(BaseModel):
    """Email to look up in the free-tier ledger"""
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="after")
    @classmethod
    def normalized(cls, value: str) -> str:
        return normalize_email(value)

    class Config:
        json_schema_extra = {"example": {"email": "jane@example.com"}}


class FreeTierCheckResponse(BaseModel):
    """Free-tier status for one email"""
    already_used: bool = Field(..., description="Whether the email has used its free roast")
    used_at: Optional[datetime] = None
    result_id: Optional[str] = None


class FreeTierMarkRequest(FreeTierEmailRequest):
    """Mark an email's free roast as used"""
    result_id: Optional[str] = Field(None, max_length=32)

    class Config:
        json_schema_extra = {"example": {"email": "jane@example.com", "result_id": "V1StGXR8_Z"}}


class FreeTierMarkResponse(BaseModel):
    success: bool = True
    already_used: bool
