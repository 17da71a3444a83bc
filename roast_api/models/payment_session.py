"""Provider-confirmed checkout sessions"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from roast_api.db.base import Base


class PaymentSession(Base):
    """
    A confirmed checkout session. Created unused by the payment webhook and
    flipped to used exactly once, when the funded roast is persisted (or when a
    credit pack is applied to an account).
    """
    __tablename__ = "payment_sessions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    session_id = Column(String(255), unique=True, nullable=False, index=True)
    used = Column(Boolean, default=False, nullable=False)

    # Minor units as reported by the provider (e.g. cents)
    amount = Column(Integer, nullable=True)
    currency = Column(String(10), nullable=True)

    # Set for credit-pack purchases
    principal_id = Column(String(255), nullable=True, index=True)
    pack = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<PaymentSession(session_id='{self.session_id}', used={self.used}, amount={self.amount})>"
