"""
VitaBalance API - Registration ORM Models.

Biometric data, preferences and meal selections collected before checkout.
Every column is nullable: rows are written field by field while the user
fills the form, and completeness is judged by the entitlement validator.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Float, Integer, JSON, ForeignKey

from vitabalance.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Registration(Base):
    """
    Registration data, one row per user.

    Enum-valued columns hold the canonical values from ``vitabalance.enums``.

    Attributes:
        user_id: Owning profile (unique).
        weight: Kilograms.
        height: Centimetres.
        age: Years.
        goal: Goal value.
        calorie_target: CalorieTarget value.
        gender: Gender value.
        activity_level: ActivityLevel value.
        training_preference: TrainingPreference value.
        meal_times: One of the fixed schedules or "custom".
        chocolate_preference: ChocolatePreference value.
    """

    __tablename__ = "registrations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )

    weight = Column(Float, nullable=True)
    height = Column(Float, nullable=True)
    age = Column(Integer, nullable=True)
    goal = Column(String(50), nullable=True)
    calorie_target = Column(String(50), nullable=True)
    gender = Column(String(20), nullable=True)
    activity_level = Column(String(50), nullable=True)
    training_preference = Column(String(20), nullable=True)
    meal_times = Column(String(100), nullable=True)
    chocolate_preference = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    def __repr__(self) -> str:
        return f"<Registration(user_id={self.user_id}, goal={self.goal})>"


class MealSelection(Base):
    """Chosen food items per meal category, one row per user."""

    __tablename__ = "meal_selections"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True
    )

    breakfast_items = Column(JSON, nullable=False, default=list)
    lunch_items = Column(JSON, nullable=False, default=list)
    snack_items = Column(JSON, nullable=False, default=list)
    dinner_items = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
