"""One-shot free roast per email"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from roast_api.db.base import Base


class FreeTierGrant(Base):
    """
    Existence of a row is the gate: an email with a row has used its free roast.
    ``email`` is always stored normalized (trimmed, lower-cased).
    """
    __tablename__ = "free_tier_grants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    used_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    result_id = Column(String(32), nullable=True)

    def __repr__(self):
        return f"<FreeTierGrant(email='{self.email}', result_id={self.result_id})>"
