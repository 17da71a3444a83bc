"""Pydantic schemas for request/response validation"""
from roast_api.schemas.analysis_schemas import StructuredAnalysis
from roast_api.schemas.roast_schemas import (
    RoastRequest,
    RoastCreatedResponse,
    RoastResultResponse,
)
from roast_api.schemas.free_tier_schemas import (
    FreeTierEmailRequest,
    FreeTierCheckResponse,
    FreeTierMarkRequest,
    FreeTierMarkResponse,
)
from roast_api.schemas.entitlement_schemas import EntitlementResponse
from roast_api.schemas.payment_schemas import (
    CheckoutRequest,
    CheckoutResponse,
    WebhookResponse,
)

__all__ = [
    "StructuredAnalysis",
    "RoastRequest",
    "RoastCreatedResponse",
    "RoastResultResponse",
    "FreeTierEmailRequest",
    "FreeTierCheckResponse",
    "FreeTierMarkRequest",
    "FreeTierMarkResponse",
    "EntitlementResponse",
    "CheckoutRequest",
    "CheckoutResponse",
    "WebhookResponse",
]
