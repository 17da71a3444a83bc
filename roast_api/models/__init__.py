"""Database models"""
from roast_api.models.entitlement import Entitlement, Plan
from roast_api.models.free_tier_grant import FreeTierGrant
from roast_api.models.payment_session import PaymentSession
from roast_api.models.roast_result import RoastResult, FundingSource

__all__ = [
    "Entitlement", "Plan", "FreeTierGrant",
    "PaymentSession", "RoastResult", "FundingSource",
]
