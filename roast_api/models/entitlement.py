"""Per-principal roast credit balance"""
from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint, Enum as SQLEnum
from sqlalchemy.sql import func
from enum import Enum
from roast_api.db.base import Base


class Plan(str, Enum):
    """Credit plan enumeration"""
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"


class Entitlement(Base):
    """
    Roast credit balance and usage history for one principal.

    ``principal_id`` is the identity provider's account id. The unique
    constraint on it is what makes get-or-create safe under concurrent first
    requests.
    """
    __tablename__ = "entitlements"
    __table_args__ = (
        CheckConstraint("roasts_remaining >= 0", name="ck_entitlements_remaining_non_negative"),
        CheckConstraint("total_roasts >= 0", name="ck_entitlements_total_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    principal_id = Column(String(255), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)

    roasts_remaining = Column(Integer, default=0, nullable=False)
    total_roasts = Column(Integer, default=0, nullable=False)
    plan = Column(
        SQLEnum(
            Plan,
            name="roastplan",
            values_callable=lambda obj: [e.value for e in obj],
        ),
        nullable=False,
        default=Plan.FREE,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_roast_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return (
            f"<Entitlement(principal_id='{self.principal_id}', "
            f"remaining={self.roasts_remaining}, total={self.total_roasts}, plan='{self.plan}')>"
        )

    @property
    def has_roasts_left(self) -> bool:
        return (self.roasts_remaining or 0) > 0
