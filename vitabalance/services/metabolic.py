"""
VitaBalance API - Metabolic Calculator.

Harris-Benedict basal metabolic rate, activity-scaled daily expenditure and
goal-adjusted calorie target. Pure functions over validated input.
"""

import math
from dataclasses import dataclass
from typing import Optional

from vitabalance.enums import ActivityLevel, Gender, Goal
from vitabalance.schemas.registration import RegistrationData

ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,
    ActivityLevel.MODERATELY_ACTIVE: 1.55,
    ActivityLevel.HIGHLY_ACTIVE: 1.725,
    ActivityLevel.EXTREMELY_ACTIVE: 1.9,
}

GOAL_CALORIE_OFFSETS = {
    Goal.LOSE_WEIGHT: -500,
    Goal.GAIN_MUSCLE: 500,
    Goal.DEFINITION: -300,
    Goal.DEFINITION_AND_MUSCLE: 200,
    Goal.LOSE_WEIGHT_AND_MUSCLE: 0,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def calculate_bmr(weight: float, height: float, age: float, gender: Optional[Gender]) -> float:
    """
    Basal metabolic rate (Harris-Benedict).

    Args:
        weight: Kilograms.
        height: Centimetres.
        age: Years.
        gender: Anything other than MALE uses the female equation.

    Returns:
        float: kcal/day, unrounded.
    """
    if gender == Gender.MALE:
        return 88.362 + 13.397 * weight + 4.799 * height - 5.677 * age
    return 447.593 + 9.247 * weight + 3.098 * height - 4.330 * age


def activity_multiplier(level: Optional[ActivityLevel]) -> float:
    """Multiplier for an activity level; an absent level counts as sedentary."""
    return ACTIVITY_MULTIPLIERS.get(level, ACTIVITY_MULTIPLIERS[ActivityLevel.SEDENTARY])


def calculate_tdee(bmr: float, level: Optional[ActivityLevel]) -> int:
    """Total daily energy expenditure, rounded."""
    return round_half_up(bmr * activity_multiplier(level))


def target_calories(tdee: int, goal: Optional[Goal]) -> int:
    """Daily calorie target; unknown or maintenance goals keep the TDEE."""
    return tdee + GOAL_CALORIE_OFFSETS.get(goal, 0)


@dataclass(frozen=True)
class MetabolicProfile:
    bmr: float
    tdee: int
    target: int


def compute_metabolic_profile(registration: RegistrationData) -> MetabolicProfile:
    """
    Run the full calculation for a registration.

    The caller guarantees weight, height and age are present.
    """
    bmr = calculate_bmr(
        registration.weight,
        registration.height,
        registration.age,
        registration.gender,
    )
    tdee = calculate_tdee(bmr, registration.activity_level)
    return MetabolicProfile(bmr=bmr, tdee=tdee, target=target_calories(tdee, registration.goal))
