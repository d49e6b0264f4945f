"""
VitaBalance API - Profile ORM Model.

One row per authenticated user; carries the paid-plan entitlement flag.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Boolean

from vitabalance.database import Base


class Profile(Base):
    """
    User profile keyed by the auth provider's user id.

    Attributes:
        id: Auth provider user id (token ``sub``).
        email: Email from the token, used as the payer email at checkout.
        has_paid_plan: Entitlement flag, only ever set by an approved payment.
        created_at: Profile creation timestamp.
        updated_at: Last profile update timestamp.
    """

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True, nullable=False)
    email = Column(String(255), nullable=True, index=True)
    has_paid_plan = Column(Boolean, nullable=False, default=False)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, has_paid_plan={self.has_paid_plan})>"
