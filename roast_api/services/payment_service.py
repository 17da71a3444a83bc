from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Optional

import stripe
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from roast_api.core.config import settings
from roast_api.errors.exceptions import PaymentProviderError
from roast_api.models.entitlement import Plan
from roast_api.models.payment_session import PaymentSession
from roast_api.schemas.payment_schemas import ROAST_PACKS, SINGLE_ROAST, CheckoutResponse
from roast_api.services import entitlement_service
from roast_api.services.identity_service import Principal

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
_SETTLED_PAYMENT_STATUSES = ("paid", "no_payment_required")


# ── session ledger ────────────────────────────────────────────────────────────

def get_session(db: Session, session_id: str) -> Optional[PaymentSession]:
    return db.query(PaymentSession).filter(PaymentSession.session_id == session_id).first()


def record(
    db: Session,
    session_id: str,
    amount: Optional[int] = None,
    currency: Optional[str] = None,
    principal_id: Optional[str] = None,
    pack: Optional[str] = None,
    commit: bool = True,
) -> bool:
    """
    Store a provider-confirmed session as unused.

    Returns True only for the call that inserted the row. Redelivered events
    find the row (or lose the unique-key race) and change nothing, so a used
    session is never reset to unused.
    """
    if get_session(db, session_id):
        logger.info(f"[Payment] Session {session_id} already recorded; ignoring redelivery")
        return False

    db.add(PaymentSession(
        session_id=session_id,
        used=False,
        amount=amount,
        currency=currency,
        principal_id=principal_id,
        pack=pack,
    ))
    try:
        if commit:
            db.commit()
        else:
            db.flush()
    except IntegrityError:
        db.rollback()
        logger.info(f"[Payment] Session {session_id} recorded concurrently; ignoring")
        return False

    logger.info(f"[Payment] Recorded session={session_id} amount={amount} pack={pack or SINGLE_ROAST}")
    return True


def is_valid(db: Session, session_id: Optional[str]) -> bool:
    """True iff the session exists and has not funded anything yet."""
    if not session_id:
        return False
    session = get_session(db, session_id)
    return bool(session and not session.used)


def consume(db: Session, session_id: str, commit: bool = True) -> bool:
    """
    Flip a session to used. Conditional on ``used = false`` so at most one
    caller ever succeeds; used or unknown sessions return False and change
    nothing.
    """
    updated = (
        db.query(PaymentSession)
        .filter(PaymentSession.session_id == session_id, PaymentSession.used.is_(False))
        .update(
            {PaymentSession.used: True, PaymentSession.used_at: datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    if updated != 1:
        if commit:
            db.rollback()
        logger.warning(f"[Payment] Rejected consume of used/unknown session {session_id}")
        return False

    if commit:
        db.commit()
    logger.info(f"[Payment] Session consumed: {session_id}")
    return True


# ── Stripe checkout ───────────────────────────────────────────────────────────

def _pack_pricing(pack: str) -> tuple[int, str]:
    """Return (price in cents, product name) for a checkout pack."""
    if pack == SINGLE_ROAST:
        return settings.SINGLE_ROAST_PRICE_CENTS, "Resume Roast"
    _, price, name = ROAST_PACKS[pack]
    return price, name


def create_checkout_session(
    pack: str,
    principal: Optional[Principal] = None,
    email: Optional[str] = None,
) -> CheckoutResponse:
    """
    Create a Stripe Checkout session.

    ``single`` buys one roast redeemed with the session id on the analyze
    page. Credit packs are credited to the signed-in account by the webhook.
    """
    if not settings.STRIPE_SECRET_KEY:
        raise PaymentProviderError("Stripe is not configured. Set STRIPE_SECRET_KEY in your .env file.")
    if pack != SINGLE_ROAST and (principal is None or principal.is_guest):
        raise ValueError("Credit packs can only be purchased by a signed-in account")

    amount, product_name = _pack_pricing(pack)
    base_url = settings.PUBLIC_BASE_URL.rstrip("/")
    if pack == SINGLE_ROAST:
        success_url = f"{base_url}/analyze?session_id={{CHECKOUT_SESSION_ID}}"
    else:
        success_url = f"{base_url}/dashboard?purchase=success"

    metadata = {"pack": pack}
    if principal is not None and not principal.is_guest:
        metadata["principal_id"] = principal.id

    params = {
        "payment_method_types": ["card"],
        "line_items": [{
            "price_data": {
                "currency": settings.STRIPE_CURRENCY,
                "product_data": {
                    "name": product_name,
                    "description": "Brutally honest AI feedback on why you didn't get the job",
                },
                "unit_amount": amount,
            },
            "quantity": 1,
        }],
        "mode": "payment",
        "success_url": success_url,
        "cancel_url": f"{base_url}/pricing",
        "metadata": metadata,
    }
    customer_email = email or (principal.email if principal else None)
    if customer_email:
        params["customer_email"] = customer_email
    if "principal_id" in metadata:
        params["client_reference_id"] = metadata["principal_id"]

    stripe.api_key = settings.STRIPE_SECRET_KEY
    try:
        session = stripe.checkout.Session.create(**params)
    except stripe.StripeError as exc:
        logger.error(f"[Payment] Stripe checkout creation failed for pack={pack}: {exc}")
        raise PaymentProviderError(f"Payment gateway error: {exc}", cause=exc) from exc

    logger.info(f"[Payment] Checkout created session={session.id} pack={pack} amount={amount}")
    return CheckoutResponse(
        session_id=session.id,
        url=session.url,
        pack=pack,
        amount=amount,
        currency=settings.STRIPE_CURRENCY,
    )


def construct_webhook_event(payload: bytes, signature: Optional[str]) -> dict:
    """
    Verify the Stripe signature and return the event as plain JSON.
    Raises PaymentProviderError(signature_invalid=True) on any verification failure.
    """
    if not settings.STRIPE_WEBHOOK_SECRET:
        raise PaymentProviderError("STRIPE_WEBHOOK_SECRET is not configured")
    if not signature:
        raise PaymentProviderError("Missing stripe-signature header", signature_invalid=True)

    try:
        stripe.Webhook.construct_event(payload, signature, settings.STRIPE_WEBHOOK_SECRET)
    except ValueError as exc:
        raise PaymentProviderError(f"Invalid payload: {exc}", signature_invalid=True, cause=exc) from exc
    except stripe.SignatureVerificationError as exc:
        raise PaymentProviderError(f"Invalid signature: {exc}", signature_invalid=True, cause=exc) from exc

    return json.loads(payload)


def reconcile_checkout_completed(db: Session, checkout_session: dict) -> bool:
    """
    Handle a ``checkout.session.completed`` event.

    Records the session. For a credit pack bought by an account, the freshly
    recorded session is converted into credits: top-up and consume happen in
    the same transaction as the insert, so a redelivered event can neither
    top up twice nor leave a redeemable one-time session behind.

    Returns True if this delivery changed state.
    """
    session_id = checkout_session.get("id")
    if not session_id:
        logger.warning("[Webhook] checkout.session.completed without id")
        return False

    payment_status = checkout_session.get("payment_status")
    if payment_status not in _SETTLED_PAYMENT_STATUSES:
        logger.info(f"[Webhook] Session {session_id} not settled yet (payment_status={payment_status})")
        return False

    metadata = checkout_session.get("metadata") or {}
    pack = metadata.get("pack")
    principal_id = metadata.get("principal_id")
    is_credit_pack = pack in ROAST_PACKS and bool(principal_id)

    if is_credit_pack:
        # Ensure the row exists before opening the reconciliation transaction.
        entitlement_service.get_or_create(db, principal_id)

    fresh = record(
        db,
        session_id,
        amount=checkout_session.get("amount_total"),
        currency=checkout_session.get("currency"),
        principal_id=principal_id,
        pack=pack,
        commit=False,
    )
    if not fresh:
        return False

    try:
        if is_credit_pack:
            roasts, _, _ = ROAST_PACKS[pack]
            entitlement_service.top_up(db, principal_id, roasts, Plan(pack), commit=False)
            consume(db, session_id, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"[Webhook] Reconciliation failed for session {session_id}", exc_info=True)
        raise

    logger.info(f"[Webhook] Reconciled session={session_id} pack={pack or SINGLE_ROAST} principal_id={principal_id}")
    return True
