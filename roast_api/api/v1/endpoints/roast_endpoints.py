"""Roast API endpoints"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from roast_api.core.dependencies import get_db
from roast_api.errors.exceptions import (
    AnalysisError,
    ExternalAnalysisException,
    NotFoundException,
    PaymentRequiredException,
    UnauthenticatedError,
    UnauthorizedException,
)
from roast_api.middleware.auth import get_optional_account
from roast_api.schemas.roast_schemas import RoastCreatedResponse, RoastRequest, RoastResultResponse
from roast_api.services.analysis_service import get_analysis_service
from roast_api.services.identity_service import Principal, resolve_principal
from roast_api.services.roast_service import get_result, run_roast

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=RoastCreatedResponse, status_code=201)
def create_roast(
    body: RoastRequest,
    account: Optional[Principal] = Depends(get_optional_account),
    db: Session = Depends(get_db),
    analyzer=Depends(get_analysis_service),
):
    """
    ## Authorize and roast

    **Role:** Signed-in accounts, guests identified by `email`, or anyone
    redeeming a paid `session_id` (no email needed).

    **Auth:** Optional `Authorization: Bearer <token>`.

    Funding is decided in a fixed order:
    1. `session_id` present → the paid checkout session is redeemed (credits ignored).
    2. Guest (no token) whose email has not used its free roast → free roast.
    3. Account credit balance.

    Nothing is debited until the analysis succeeded and the result is stored.

    ### Responses
    | Status | Meaning                                                        |
    |--------|----------------------------------------------------------------|
    | 201    | `{id, funded_by, remaining}` — redirect to `/results/{id}`      |
    | 401    | No token, no email and no session — prompt sign-in              |
    | 402    | `{needs_payment: true, reason}` — redirect to pricing           |
    | 503    | Analysis failed — safe to retry, nothing was charged            |
    """
    try:
        principal = account or resolve_principal(email=body.email, payment_session_token=body.session_id)
    except UnauthenticatedError as exc:
        raise UnauthorizedException(detail=str(exc))

    try:
        settlement = run_roast(
            db,
            principal,
            body.resume,
            body.job_description,
            analyzer,
            payment_session_token=body.session_id,
        )
    except AnalysisError as exc:
        logger.error(f"[/roasts] Analysis failed for {principal.key}: {exc}")
        raise ExternalAnalysisException()

    if not settlement.ok:
        raise PaymentRequiredException(reason=settlement.denied.value)

    return RoastCreatedResponse(
        id=settlement.result_id,
        funded_by=settlement.funded_by.value,
        remaining=settlement.remaining,
    )


@router.get("/{result_id}", response_model=RoastResultResponse)
async def read_roast(result_id: str, db: Session = Depends(get_db)):
    """
    ## Get a roast by its shareable id

    **Role:** Public — result links are meant to be shared.
    """
    result = get_result(db, result_id)
    if result is None:
        raise NotFoundException(detail="Roast not found")
    return result
