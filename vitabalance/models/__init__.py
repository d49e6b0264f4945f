"""
VitaBalance API - ORM Models Package.

Export all SQLAlchemy models so importing the package registers every table
on Base.metadata.
"""

from vitabalance.models.profile import Profile
from vitabalance.models.registration import Registration, MealSelection
from vitabalance.models.payment import Payment, Subscription
from vitabalance.models.nutritional_plan import NutritionalPlan, PlanObjective

__all__ = [
    "Profile",
    "Registration",
    "MealSelection",
    "Payment",
    "Subscription",
    "NutritionalPlan",
    "PlanObjective",
]
