"""Payment API endpoints — Stripe integration."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from roast_api.core.dependencies import get_db
from roast_api.errors.exceptions import (
    BadGatewayException,
    BadRequestException,
    PaymentProviderError,
    UnauthorizedException,
)
from roast_api.middleware.auth import get_optional_account
from roast_api.schemas.payment_schemas import (
    SINGLE_ROAST,
    CheckoutRequest,
    CheckoutResponse,
    WebhookResponse,
)
from roast_api.services.identity_service import Principal, normalize_email
from roast_api.services.payment_service import (
    CHECKOUT_COMPLETED,
    construct_webhook_event,
    create_checkout_session,
    reconcile_checkout_completed,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/checkout", response_model=CheckoutResponse, status_code=201)
def start_checkout(
    body: CheckoutRequest,
    account: Optional[Principal] = Depends(get_optional_account),
):
    """
    ## Start a Stripe checkout

    **Role:** Anyone for `single`; signed-in accounts for `starter` / `pro` packs.

    | Pack    | Roasts | Price  |
    |---------|--------|--------|
    | single  | 1      | $7     |
    | starter | 10     | $5     |
    | pro     | 50     | $15    |

    ### Frontend integration
    - Redirect the browser to `url`.
    - `single`: Stripe returns to `/analyze?session_id=...`; send that
      `session_id` with **POST /roasts**.
    - Packs: credits are added by the webhook; poll **GET /users/me**.
    """
    if body.pack != SINGLE_ROAST and account is None:
        raise UnauthorizedException(detail="Sign in to buy a roast pack")

    email = None
    if body.email:
        try:
            email = normalize_email(body.email)
        except ValueError as exc:
            raise BadRequestException(detail=str(exc))

    try:
        return create_checkout_session(body.pack, principal=account, email=email)
    except PaymentProviderError as exc:
        raise BadGatewayException(detail=str(exc))


@router.post("/webhook", response_model=WebhookResponse)
async def stripe_webhook(request: Request, db: Session = Depends(get_db)):
    """
    ## Stripe webhook (internal — not called by frontend)

    **Role:** Public — called by Stripe, authenticated by `stripe-signature`.

    Records `checkout.session.completed` sessions so they can fund a roast,
    and credits accounts for pack purchases. Redelivered events are no-ops.
    Other event types are acknowledged and ignored.
    """
    payload = await request.body()
    try:
        event = construct_webhook_event(payload, request.headers.get("stripe-signature"))
    except PaymentProviderError as exc:
        logger.warning(f"[Webhook] Rejected event: {exc}")
        raise BadRequestException(detail="Invalid signature")

    event_type = event.get("type")
    if event_type != CHECKOUT_COMPLETED:
        return WebhookResponse(received=True, recorded=False, message=f"Ignored {event_type}")

    checkout_session = (event.get("data") or {}).get("object") or {}
    recorded = reconcile_checkout_completed(db, checkout_session)
    return WebhookResponse(
        received=True,
        recorded=recorded,
        message="Payment recorded" if recorded else "Already processed",
    )
