"""Persisted roast results"""
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from enum import Enum
from roast_api.db.base import Base


class FundingSource(str, Enum):
    CREDIT = "credit"
    PAYMENT = "payment"
    FREE_GRANT = "free_grant"


class RoastResult(Base):
    """Write-once analysis output, addressed by a short shareable id."""
    __tablename__ = "roast_results"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    result_id = Column(String(32), unique=True, nullable=False, index=True)

    funded_by = Column(
        SQLEnum(
            FundingSource,
            name="fundingsource",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        index=True,
    )
    principal_id = Column(String(255), nullable=True, index=True)
    email = Column(String(255), nullable=True)
    payment_session_id = Column(String(255), nullable=True)

    grade = Column(String(4), nullable=False)
    headline = Column(String(255), nullable=False)
    rejection = Column(Text, nullable=False)
    hiring_manager_quote = Column(Text, nullable=False, default="")
    improvements = Column(JSON, nullable=False, default=list)
    skill_gaps = Column(JSON, nullable=False, default=list)
    ats_score = Column(Integer, nullable=True)
    analysis = Column(JSON, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<RoastResult(result_id='{self.result_id}', grade='{self.grade}', funded_by='{self.funded_by}')>"
