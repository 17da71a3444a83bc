"""Credit authorization gate.

Single owner of the entitlement policy. ``authorize`` is a provisional check
and never debits; ``settle`` persists the finished roast and debits the
ledger that funded it in one transaction.

Policy order (fixed):
    1. A payment session token is validated exclusively; the credit balance
       is ignored.
    2. A guest whose email has not used its free roast gets the free grant.
    3. Otherwise the account credit balance decides. Guests have no balance
       and are denied once their free roast is spent.

The free-tier ledger is keyed by normalized email. When an account is first
seen with an email, that email's free grant is consumed too, so signing up
and then roasting as a guest with the same address cannot earn an extra
free roast.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from roast_api.models.entitlement import Entitlement
from roast_api.models.roast_result import FundingSource, RoastResult
from roast_api.services import entitlement_service, free_tier_service, payment_service
from roast_api.services.identity_service import Principal

logger = logging.getLogger(__name__)


class DenialReason(str, Enum):
    NO_CREDITS_REMAINING = "no_credits_remaining"
    INVALID_OR_EXPIRED_SESSION = "invalid_or_expired_session"
    FREE_GRANT_ALREADY_USED = "free_grant_already_used"


@dataclass(frozen=True)
class AllowedByCredit:
    principal_id: str
    remaining: int  # balance before this roast is debited


@dataclass(frozen=True)
class AllowedByPayment:
    session_id: str


@dataclass(frozen=True)
class AllowedByFreeGrant:
    email: str


@dataclass(frozen=True)
class Denied:
    reason: DenialReason


Authorization = Union[AllowedByCredit, AllowedByPayment, AllowedByFreeGrant, Denied]


@dataclass(frozen=True)
class Settlement:
    result_id: Optional[str] = None
    funded_by: Optional[FundingSource] = None
    remaining: Optional[int] = None
    denied: Optional[DenialReason] = None

    @property
    def ok(self) -> bool:
        return self.denied is None


class _SettlementLost(Exception):
    """A concurrent request spent the resource between authorize and settle."""

    def __init__(self, reason: DenialReason):
        super().__init__(reason.value)
        self.reason = reason


def ensure_account_entitlement(db: Session, principal: Principal) -> Entitlement:
    """Get-or-create the account's entitlement and close the email's free grant."""
    entitlement = entitlement_service.get_or_create(db, principal.id, principal.email)
    if principal.email and not free_tier_service.check_email(db, principal.email).exists:
        free_tier_service.mark_used(db, principal.email)
    return entitlement


def authorize(db: Session, principal: Principal, payment_session_token: Optional[str] = None) -> Authorization:
    """Decide whether *principal* may request a roast. Never mutates a balance."""
    if payment_session_token:
        if payment_service.is_valid(db, payment_session_token):
            return AllowedByPayment(session_id=payment_session_token)
        return Denied(DenialReason.INVALID_OR_EXPIRED_SESSION)

    if principal.is_guest:
        if not principal.email:
            # Only a session holder has no email, and it came without a session.
            return Denied(DenialReason.INVALID_OR_EXPIRED_SESSION)
        if not free_tier_service.check_email(db, principal.email).exists:
            return AllowedByFreeGrant(email=principal.email)
        return Denied(DenialReason.FREE_GRANT_ALREADY_USED)

    entitlement = ensure_account_entitlement(db, principal)
    if entitlement.has_roasts_left:
        return AllowedByCredit(principal_id=entitlement.principal_id, remaining=entitlement.roasts_remaining)
    return Denied(DenialReason.NO_CREDITS_REMAINING)


def _debit(db: Session, authorization: Authorization, result: RoastResult) -> Optional[int]:
    """Debit the funding ledger inside the open transaction; returns remaining credits if any."""
    if isinstance(authorization, AllowedByCredit):
        outcome = entitlement_service.consume(db, authorization.principal_id, commit=False)
        if not outcome.granted:
            raise _SettlementLost(DenialReason.NO_CREDITS_REMAINING)
        return outcome.remaining

    if isinstance(authorization, AllowedByPayment):
        if not payment_service.consume(db, authorization.session_id, commit=False):
            raise _SettlementLost(DenialReason.INVALID_OR_EXPIRED_SESSION)
        return None

    if isinstance(authorization, AllowedByFreeGrant):
        try:
            marked = free_tier_service.mark_used(db, authorization.email, result.result_id, commit=False)
        except IntegrityError:
            raise _SettlementLost(DenialReason.FREE_GRANT_ALREADY_USED)
        if marked.already_used:
            raise _SettlementLost(DenialReason.FREE_GRANT_ALREADY_USED)
        return None

    raise TypeError(f"Cannot settle a {type(authorization).__name__} authorization")


def settle(db: Session, authorization: Authorization, result: RoastResult) -> Settlement:
    """
    Persist *result* and debit the ledger named by *authorization*, atomically.

    Called only after the analysis succeeded. If the resource was spent by a
    concurrent request in the meantime, nothing is written and the settlement
    carries the denial reason.
    """
    if isinstance(authorization, Denied):
        return Settlement(denied=authorization.reason)

    try:
        db.add(result)
        db.flush()
        remaining = _debit(db, authorization, result)
        db.commit()
    except _SettlementLost as lost:
        db.rollback()
        logger.warning(f"Settlement lost a race: result_id={result.result_id}, reason={lost.reason.value}")
        return Settlement(denied=lost.reason)
    except Exception:
        db.rollback()
        raise

    return Settlement(result_id=result.result_id, funded_by=result.funded_by, remaining=remaining)


def funding_source(authorization: Authorization) -> FundingSource:
    if isinstance(authorization, AllowedByCredit):
        return FundingSource.CREDIT
    if isinstance(authorization, AllowedByPayment):
        return FundingSource.PAYMENT
    if isinstance(authorization, AllowedByFreeGrant):
        return FundingSource.FREE_GRANT
    raise TypeError("Denied authorizations fund nothing")
