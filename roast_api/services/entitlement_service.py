"""Entitlement store: per-account roast credit balances.

Every mutation is a single conditional UPDATE or a unique-key-guarded INSERT;
no balance is ever read, changed in Python and written back.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from roast_api.core.config import settings
from roast_api.models.entitlement import Entitlement, Plan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsumeResult:
    granted: bool
    remaining: int


def get_entitlement(db: Session, principal_id: str) -> Optional[Entitlement]:
    """Read-only lookup; never creates."""
    return db.query(Entitlement).filter(Entitlement.principal_id == principal_id).first()


def get_or_create(db: Session, principal_id: str, email: Optional[str] = None) -> Entitlement:
    """
    Return the principal's entitlement, creating it with the free allotment on
    first sight.

    Two concurrent first requests both try the INSERT; the unique constraint on
    ``principal_id`` lets exactly one win. The loser rolls back and reads the
    winner's row, so the allotment is granted once.
    """
    entitlement = get_entitlement(db, principal_id)
    if entitlement:
        return entitlement

    entitlement = Entitlement(
        principal_id=principal_id,
        email=email,
        roasts_remaining=settings.FREE_ROAST_ALLOTMENT,
        total_roasts=0,
        plan=Plan.FREE,
    )
    try:
        db.add(entitlement)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info(f"Entitlement for {principal_id} created concurrently; using existing row")
        return get_entitlement(db, principal_id)

    db.refresh(entitlement)
    logger.info(
        f"Entitlement created: principal_id={principal_id}, "
        f"roasts_remaining={entitlement.roasts_remaining}"
    )
    return entitlement


def consume(db: Session, principal_id: str, commit: bool = True) -> ConsumeResult:
    """
    Debit one roast if any remain (compare-and-decrement).

    At zero this is a no-op that reports ``granted=False``. With
    ``commit=False`` the debit joins the caller's transaction.
    """
    updated = (
        db.query(Entitlement)
        .filter(
            Entitlement.principal_id == principal_id,
            Entitlement.roasts_remaining > 0,
        )
        .update(
            {
                Entitlement.roasts_remaining: Entitlement.roasts_remaining - 1,
                Entitlement.total_roasts: Entitlement.total_roasts + 1,
                Entitlement.last_roast_at: datetime.now(timezone.utc),
            },
            synchronize_session=False,
        )
    )

    if updated != 1:
        if commit:
            db.rollback()
        logger.info(f"Roast denied, no credits: principal_id={principal_id}")
        return ConsumeResult(granted=False, remaining=0)

    # Still inside the transaction holding the row lock, so this sees our own write.
    remaining = (
        db.query(Entitlement.roasts_remaining)
        .filter(Entitlement.principal_id == principal_id)
        .scalar()
    )
    if commit:
        db.commit()

    logger.info(f"Roast consumed: principal_id={principal_id}, remaining={remaining}")
    return ConsumeResult(granted=True, remaining=remaining)


def top_up(
    db: Session,
    principal_id: str,
    count: int,
    plan: Optional[Plan] = None,
    commit: bool = True,
) -> Entitlement:
    """
    Add *count* roasts and optionally switch plan.

    Not idempotent: call exactly once per purchase. The payment reconciliation
    path guarantees that by only topping up on a freshly recorded session.
    """
    if count <= 0:
        raise ValueError("count must be positive")

    values = {Entitlement.roasts_remaining: Entitlement.roasts_remaining + count}
    if plan is not None:
        values[Entitlement.plan] = Plan(plan)

    updated = (
        db.query(Entitlement)
        .filter(Entitlement.principal_id == principal_id)
        .update(values, synchronize_session=False)
    )
    if updated != 1:
        if commit:
            db.rollback()
        raise LookupError(f"No entitlement for principal {principal_id}")

    if commit:
        db.commit()

    entitlement = get_entitlement(db, principal_id)
    db.refresh(entitlement)
    logger.info(
        f"Roast top-up: principal_id={principal_id}, added={count}, "
        f"remaining={entitlement.roasts_remaining}, plan={entitlement.plan.value}"
    )
    return entitlement
