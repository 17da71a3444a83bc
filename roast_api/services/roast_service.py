"""Roast orchestration: authorize, analyze, then persist-and-debit."""
import logging
import secrets
import string
from typing import Optional

from sqlalchemy.orm import Session

from roast_api.models.roast_result import RoastResult
from roast_api.schemas.analysis_schemas import StructuredAnalysis
from roast_api.services import authorization_service
from roast_api.services.authorization_service import Denied, Settlement
from roast_api.services.identity_service import Principal
from roast_api.utils.logger import log_roast_operation

logger = logging.getLogger(__name__)

RESULT_ID_ALPHABET = string.ascii_letters + string.digits + "_-"
RESULT_ID_LENGTH = 10


def generate_result_id() -> str:
    """Short URL-safe id for shareable result links."""
    return "".join(secrets.choice(RESULT_ID_ALPHABET) for _ in range(RESULT_ID_LENGTH))


def build_result(
    analysis: StructuredAnalysis,
    authorization: authorization_service.Authorization,
    principal: Principal,
) -> RoastResult:
    session_id = getattr(authorization, "session_id", None)
    return RoastResult(
        result_id=generate_result_id(),
        funded_by=authorization_service.funding_source(authorization),
        principal_id=principal.id,
        email=principal.email,
        payment_session_id=session_id,
        grade=analysis.grade,
        headline=analysis.headline,
        rejection=analysis.rejection,
        hiring_manager_quote=analysis.hiring_manager_quote,
        improvements=list(analysis.improvements),
        skill_gaps=analysis.skill_gaps,
        ats_score=analysis.ats_score.score,
        analysis=analysis.model_dump(mode="json"),
    )


def run_roast(
    db: Session,
    principal: Principal,
    resume: str,
    job_description: str,
    analyzer,
    payment_session_token: Optional[str] = None,
) -> Settlement:
    """
    Authorize, run the analysis, then persist the result and debit in one step.

    Nothing is debited before the analysis succeeds: an ``AnalysisError``
    from *analyzer* propagates with every ledger untouched. A denial (up
    front, or lost to a concurrent request at settle time) comes back as a
    Settlement with ``denied`` set.
    """
    context = {"principal_id": principal.key, "principal_email": principal.email}

    authorization = authorization_service.authorize(db, principal, payment_session_token)
    if isinstance(authorization, Denied):
        log_roast_operation("AUTHORIZE", reason=authorization.reason.value, **context)
        return Settlement(denied=authorization.reason)

    # Release the read transaction before the long external call.
    db.commit()

    try:
        analysis = analyzer.analyze(resume, job_description)
    except Exception as exc:
        log_roast_operation("ANALYZE", error=str(exc), **context)
        raise

    settlement = authorization_service.settle(db, authorization, build_result(analysis, authorization, principal))
    if settlement.ok:
        log_roast_operation(
            "SETTLE",
            funded_by=settlement.funded_by.value,
            result_id=settlement.result_id,
            **context,
        )
    else:
        log_roast_operation("SETTLE", reason=settlement.denied.value, **context)
    return settlement


def get_result(db: Session, result_id: str) -> Optional[RoastResult]:
    """Look up a stored roast by its shareable id."""
    return db.query(RoastResult).filter(RoastResult.result_id == result_id).first()
