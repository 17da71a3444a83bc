"""Free tier endpoints"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from roast_api.core.dependencies import get_db
from roast_api.schemas.free_tier_schemas import (
    FreeTierCheckResponse,
    FreeTierEmailRequest,
    FreeTierMarkRequest,
    FreeTierMarkResponse,
)
from roast_api.services.free_tier_service import check_email, mark_used

router = APIRouter()


@router.post("/check", response_model=FreeTierCheckResponse)
async def check_free_tier(body: FreeTierEmailRequest, db: Session = Depends(get_db)):
    """
    ## Has this email used its free roast?

    **Role:** Public.

    Emails are matched case- and whitespace-insensitively.

    ### Frontend integration
    - Call before showing the free roast form; if `already_used` is true,
      link to `/results/{result_id}` and offer the pricing page.
    """
    status = check_email(db, body.email)
    return FreeTierCheckResponse(
        already_used=status.exists,
        used_at=status.used_at,
        result_id=status.result_id,
    )


@router.post("/mark", response_model=FreeTierMarkResponse)
async def mark_free_tier(body: FreeTierMarkRequest, db: Session = Depends(get_db)):
    """Mark an email's free roast as used. Repeat calls return `already_used: true`."""
    result = mark_used(db, body.email, body.result_id)
    return FreeTierMarkResponse(success=True, already_used=result.already_used)
