"""
VitaBalance API - Entitlement Validator.

Decides whether a user may proceed to checkout: every registration field
filled and at least six items picked for each meal category.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from vitabalance.schemas.registration import (
    EligibilityResponse,
    InvalidMeal,
    MealSelectionData,
    RegistrationData,
)

MIN_ITEMS_PER_MEAL = 6

NUMERIC_FIELDS = [
    ("weight", "Weight (must be greater than 0)"),
    ("height", "Height (must be greater than 0)"),
    ("age", "Age (must be greater than 0)"),
]

CHOICE_FIELDS = [
    ("goal", "Goal"),
    ("calorie_target", "Calorie target"),
    ("gender", "Gender"),
    ("activity_level", "Activity level"),
    ("training_preference", "Training preference"),
    ("meal_times", "Meal times"),
    ("chocolate_preference", "Chocolate preference"),
]

MEAL_LABELS = [
    ("breakfast", "Breakfast"),
    ("lunch", "Lunch"),
    ("snack", "Snack"),
    ("dinner", "Dinner"),
]


@dataclass
class EntitlementResult:
    """
    Outcome of the checkout eligibility check.

    Attributes:
        is_valid: True when nothing is missing.
        missing_fields: Human-readable field labels, in form order.
        invalid_meals: Meal categories below the item minimum.
    """

    is_valid: bool
    missing_fields: List[str] = field(default_factory=list)
    invalid_meals: List[InvalidMeal] = field(default_factory=list)

    def summary(self) -> Optional[str]:
        """Grouped message shown before checkout, or None when valid."""
        if self.is_valid:
            return None
        sections = []
        if self.missing_fields:
            lines = "\n".join(f"- {name}" for name in self.missing_fields)
            sections.append(f"Missing registration fields:\n{lines}")
        if self.invalid_meals:
            lines = "\n".join(f"- {describe_invalid_meal(meal)}" for meal in self.invalid_meals)
            sections.append(f"Incomplete meal selections:\n{lines}")
        return "Please complete your registration before checkout.\n\n" + "\n\n".join(sections)

    def to_response(self) -> EligibilityResponse:
        return EligibilityResponse(
            is_valid=self.is_valid,
            missing_fields=self.missing_fields,
            invalid_meals=self.invalid_meals,
            message=self.summary(),
        )


def describe_invalid_meal(meal: InvalidMeal) -> str:
    if meal.selected == 0:
        return f"{meal.label} (no items selected)"
    return f"{meal.label} (minimum {meal.required} items, selected {meal.selected})"


def _is_positive_number(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number > 0


def validate_entitlement(
    registration: Optional[RegistrationData],
    meal_selections: Optional[MealSelectionData],
) -> EntitlementResult:
    """
    Check registration completeness and meal selections.

    Args:
        registration: Stored registration, or None when the user has none yet.
        meal_selections: Stored selections, or None.

    Returns:
        EntitlementResult: Deterministic for the same input.
    """
    registration = registration or RegistrationData()
    meal_selections = meal_selections or MealSelectionData()

    missing = []
    for name, label in NUMERIC_FIELDS:
        if not _is_positive_number(getattr(registration, name)):
            missing.append(label)
    for name, label in CHOICE_FIELDS:
        value = getattr(registration, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(label)

    invalid_meals = []
    for category, label in MEAL_LABELS:
        count = len(meal_selections.items_for(category))
        if count < MIN_ITEMS_PER_MEAL:
            invalid_meals.append(InvalidMeal(
                category=category,
                label=label,
                required=MIN_ITEMS_PER_MEAL,
                selected=count,
            ))

    return EntitlementResult(
        is_valid=not missing and not invalid_meals,
        missing_fields=missing,
        invalid_meals=invalid_meals,
    )
