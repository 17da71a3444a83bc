"""Entitlement Pydantic schemas"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class EntitlementResponse(BaseModel):
    """Current roast credit balance for the authenticated account."""
    principal_id: str
    email: Optional[str] = None
    roasts_remaining: int
    total_roasts: int
    plan: str
    created_at: Optional[datetime] = None
    last_roast_at: Optional[datetime] = None
    needs_payment: bool

    class Config:
        from_attributes = True
