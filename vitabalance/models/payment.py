"""
VitaBalance API - Payment and Subscription ORM Models.

Both tables are written only by the webhook reconciler and are keyed by
unique business keys so redelivered notifications converge on one row.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Numeric

from vitabalance.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Payment(Base):
    """
    Payment reported by Mercado Pago.

    Attributes:
        external_id: Provider payment id (unique).
        user_id: Owner, taken from the provider's external_reference.
        amount: Transaction amount.
        currency: ISO currency code.
        status: pending, approved or rejected; approved/rejected are terminal.
        payment_method: Provider payment type id.
    """

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    external_id = Column(String(64), nullable=False, unique=True, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    amount = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    currency = Column(String(3), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    payment_method = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    def __repr__(self) -> str:
        return f"<Payment(external_id={self.external_id}, status={self.status})>"


class Subscription(Base):
    """Premium access granted by an approved payment. Append-only."""

    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    payment_id = Column(String(36), nullable=False, unique=True)
    plan_type = Column(String(50), nullable=False, default="premium")
    status = Column(String(50), nullable=False, default="active")
    start_date = Column(DateTime(timezone=True), nullable=False, default=_now)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    def __repr__(self) -> str:
        return f"<Subscription(user_id={self.user_id}, plan={self.plan_type}, status={self.status})>"
