"""
VitaBalance API - Nutritional Plan ORM Models.

Initial plan snapshot created once per approved payment; never updated.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Float, Integer

from vitabalance.database import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class NutritionalPlan(Base):
    """
    Daily calorie and macro split derived from the registration at payment time.

    Attributes:
        user_id: Plan owner.
        payment_id: Internal id of the approved Payment (unique).
        daily_calories: Target calories.
        protein_percentage: Share of calories from protein.
        carbs_percentage: Share of calories from carbohydrates.
        fat_percentage: Share of calories from fat.
        objective: Goal value at creation time.
        start_date: Plan start.
    """

    __tablename__ = "nutritional_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    payment_id = Column(String(36), nullable=False, unique=True)
    daily_calories = Column(Integer, nullable=False)
    protein_percentage = Column(Integer, nullable=False, default=30)
    carbs_percentage = Column(Integer, nullable=False, default=40)
    fat_percentage = Column(Integer, nullable=False, default=30)
    objective = Column(String(50), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False, default=_now)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    def __repr__(self) -> str:
        return f"<NutritionalPlan(user_id={self.user_id}, daily_calories={self.daily_calories})>"


class PlanObjective(Base):
    """Weekly weight goal attached to a nutritional plan (one per plan)."""

    __tablename__ = "plan_objectives"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    plan_id = Column(String(36), nullable=False, unique=True)
    initial_weight = Column(Float, nullable=True)
    activity_level = Column(String(50), nullable=True)
    weekly_goal = Column(Float, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
