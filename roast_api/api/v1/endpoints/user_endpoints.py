"""Account endpoints"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from roast_api.core.dependencies import get_db
from roast_api.middleware.auth import require_account
from roast_api.schemas.entitlement_schemas import EntitlementResponse
from roast_api.services.authorization_service import ensure_account_entitlement
from roast_api.services.identity_service import Principal

router = APIRouter()


@router.get("/me", response_model=EntitlementResponse)
async def my_entitlement(
    principal: Principal = Depends(require_account),
    db: Session = Depends(get_db),
):
    """
    ## Get my roast balance

    **Role:** Signed-in accounts.

    **Auth:** `Authorization: Bearer <token>` header required.

    First call creates the account's balance with the free allotment.

    ### Frontend integration
    - Show a "Buy more roasts" CTA when `needs_payment` is true.
    """
    entitlement = ensure_account_entitlement(db, principal)
    return EntitlementResponse(
        principal_id=entitlement.principal_id,
        email=entitlement.email,
        roasts_remaining=entitlement.roasts_remaining,
        total_roasts=entitlement.total_roasts,
        plan=entitlement.plan.value,
        created_at=entitlement.created_at,
        last_roast_at=entitlement.last_roast_at,
        needs_payment=not entitlement.has_roasts_left,
    )
