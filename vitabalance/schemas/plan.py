"""
VitaBalance API - Plan Schemas.

Pydantic schemas for the generated plan: meals, training and shopping list.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from vitabalance.enums import Goal, Intensity, Priority, TrainingPreference


class Macros(BaseModel):
    """Macronutrients in grams."""

    protein: int
    carbs: int
    fat: int


class FoodOptionGroup(BaseModel):
    """A named group of interchangeable foods, e.g. "Proteins"."""

    title: str
    items: List[str]


class Meal(BaseModel):
    """
    One meal of the daily plan.

    Attributes:
        id: Stable slot id (breakfast, morning_snack, ...).
        name: Display name.
        time: HH:MM.
        calories: Share of the daily target.
        macros: Gram amounts after goal scaling.
        options: Three option groups to choose from.
    """

    id: str
    name: str
    time: str
    calories: int
    macros: Macros
    options: List[FoodOptionGroup]


class PlanMetrics(BaseModel):
    """Headline numbers shown above the plan."""

    bmr: float
    tdee: int
    daily_calories: int
    water_liters: float = 2.5
    meals_per_day: int = 5


class Exercise(BaseModel):
    name: str
    sets: int
    reps: str
    rest: str
    notes: List[str] = Field(default_factory=list)


class TrainingDay(BaseModel):
    """
    A single workout.

    Attributes:
        day: 1-based day number.
        workout_type: Focus of the session (e.g. "Pernas").
        exercises: Exercises in order.
        duration_minutes: exercises * 5 + 10.
    """

    day: int
    workout_type: str
    intensity: Intensity
    exercises: List[Exercise]
    warm_up: List[str]
    cool_down: List[str]
    tips: List[str]
    duration_minutes: int


class TrainingPlan(BaseModel):
    """Weekly training; ``included`` is False when the user opted out."""

    included: bool
    preference: TrainingPreference
    days_per_week: int
    exercises_per_day: int = 0
    intensity: Optional[Intensity] = None
    days: List[TrainingDay] = Field(default_factory=list)
    message: Optional[str] = None


class ShoppingItem(BaseModel):
    name: str
    priority: Priority


class ShoppingCategory(BaseModel):
    name: str
    items: List[ShoppingItem]


class ShoppingList(BaseModel):
    categories: List[ShoppingCategory]
    tips: List[str]


class PlanResponse(BaseModel):
    """Complete personalised plan."""

    goal: Optional[Goal] = None
    metrics: PlanMetrics
    meals: List[Meal]
    training: TrainingPlan
    shopping_list: ShoppingList
