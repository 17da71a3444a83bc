"""Schemas for the roast endpoints"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from roast_api.core.config import settings
from roast_api.services.identity_service import normalize_email


class RoastRequest(BaseModel):
    """Resume + job description submitted for a roast"""
    resume: str = Field(..., min_length=1, max_length=settings.MAX_RESUME_CHARS)
    job_description: str = Field(..., min_length=1, max_length=settings.MAX_JOB_DESCRIPTION_CHARS)
    email: Optional[EmailStr] = Field(None, description="Self-reported email for the guest free roast")
    session_id: Optional[str] = Field(None, description="Checkout session id for a paid one-time roast")

    @field_validator("resume", "job_description", mode="after")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value

    @field_validator("email", mode="after")
    @classmethod
    def lowercase_email(cls, value: Optional[str]) -> Optional[str]:
        return normalize_email(value) if value else None

    class Config:
        json_schema_extra = {
            "example": {
                "resume": "Senior Synergy Evangelist, 2015-present ...",
                "job_description": "We are looking for a Staff Engineer ...",
                "email": "jane@example.com",
            }
        }


class RoastCreatedResponse(BaseModel):
    """Returned after a roast has been generated and paid for"""
    id: str = Field(..., description="Shareable result id")
    funded_by: str = Field(..., description="credit | payment | free_grant")
    remaining: Optional[int] = Field(None, description="Account credits left after this roast")


class RoastResultResponse(BaseModel):
    """Public view of a stored roast"""
    result_id: str
    grade: str
    headline: str
    rejection: str
    hiring_manager_quote: str
    improvements: List[str]
    skill_gaps: List[str]
    ats_score: Optional[int] = None
    analysis: Dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True
