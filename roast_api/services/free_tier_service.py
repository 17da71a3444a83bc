"""Free-tier ledger: one free roast per normalized email"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from roast_api.models.free_tier_grant import FreeTierGrant
from roast_api.services.identity_service import normalize_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FreeTierStatus:
    exists: bool
    used_at: Optional[datetime] = None
    result_id: Optional[str] = None


@dataclass(frozen=True)
class MarkUsedResult:
    already_used: bool


def get_grant(db: Session, email: str) -> Optional[FreeTierGrant]:
    return db.query(FreeTierGrant).filter(FreeTierGrant.email == normalize_email(email)).first()


def check_email(db: Session, email: str) -> FreeTierStatus:
    """Pure lookup of an email's free-tier status"""
    grant = get_grant(db, email)
    if not grant:
        return FreeTierStatus(exists=False)
    return FreeTierStatus(exists=True, used_at=grant.used_at, result_id=grant.result_id)


def _attach_result_id(db: Session, email: str, result_id: str) -> None:
    """Fill in result_id on an existing grant that has none; used_at is never touched."""
    (
        db.query(FreeTierGrant)
        .filter(FreeTierGrant.email == email, FreeTierGrant.result_id.is_(None))
        .update({FreeTierGrant.result_id: result_id}, synchronize_session=False)
    )


def mark_used(
    db: Session,
    email: str,
    result_id: Optional[str] = None,
    commit: bool = True,
) -> MarkUsedResult:
    """
    Consume the free roast for *email*.

    Returns ``already_used=False`` exactly once per email, for the call whose
    INSERT won. Every later (or concurrently losing) call returns
    ``already_used=True`` and may only attach a result id to a grant that
    does not have one yet.

    With ``commit=False`` the INSERT is flushed into the caller's transaction
    and a lost race surfaces as ``IntegrityError`` for the caller to roll back.
    """
    email = normalize_email(email)

    if get_grant(db, email):
        if result_id:
            _attach_result_id(db, email, result_id)
            if commit:
                db.commit()
        logger.info(f"Free roast already used: email={email}")
        return MarkUsedResult(already_used=True)

    db.add(FreeTierGrant(email=email, result_id=result_id))
    if not commit:
        db.flush()
        logger.info(f"Free roast granted: email={email}, result_id={result_id}")
        return MarkUsedResult(already_used=False)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if result_id:
            _attach_result_id(db, email, result_id)
            db.commit()
        logger.info(f"Free roast claimed concurrently: email={email}")
        return MarkUsedResult(already_used=True)

    logger.info(f"Free roast granted: email={email}, result_id={result_id}")
    return MarkUsedResult(already_used=False)
