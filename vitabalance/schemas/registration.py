"""
VitaBalance API - Registration Schemas.

Pydantic schemas for registration data, meal selections and checkout
eligibility. Legacy display labels are accepted on input and converted to
enum values here, once.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vitabalance.enums import (
    ActivityLevel,
    CalorieTarget,
    ChocolatePreference,
    Gender,
    Goal,
    TrainingPreference,
    parse_meal_schedule,
)

ENUM_FIELDS = {
    "goal": Goal,
    "calorie_target": CalorieTarget,
    "gender": Gender,
    "activity_level": ActivityLevel,
    "training_preference": TrainingPreference,
    "chocolate_preference": ChocolatePreference,
}

MEAL_CATEGORIES = ("breakfast", "lunch", "snack", "dinner")


class RegistrationData(BaseModel):
    """
    Registration snapshot consumed by the plan generator and the validator.

    Every field is optional because registrations are saved incrementally.
    Unknown stored values read back as None.
    """

    weight: Optional[float] = None
    height: Optional[float] = None
    age: Optional[float] = None
    goal: Optional[Goal] = None
    calorie_target: Optional[CalorieTarget] = None
    gender: Optional[Gender] = None
    activity_level: Optional[ActivityLevel] = None
    training_preference: Optional[TrainingPreference] = None
    meal_times: Optional[str] = None
    chocolate_preference: Optional[ChocolatePreference] = None

    @field_validator(*ENUM_FIELDS.keys(), mode="before")
    @classmethod
    def parse_enum_label(cls, value: Any, info) -> Any:
        if value is None:
            return None
        return ENUM_FIELDS[info.field_name].from_label(value)

    @field_validator("meal_times", mode="before")
    @classmethod
    def parse_meal_times(cls, value: Any) -> Any:
        return parse_meal_schedule(value)

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]) -> Optional["RegistrationData"]:
        """Build a snapshot from a ``registrations`` row, or None when there is no row."""
        if row is None:
            return None
        return cls(**{name: row.get(name) for name in cls.model_fields})

    def to_row(self) -> Dict[str, Any]:
        """Column values for the ``registrations`` table (enum values, not members)."""
        return self.model_dump(mode="json")


class RegistrationUpdate(BaseModel):
    """
    Partial registration update.

    Only the fields present in the request body are written. Enum fields take
    either the canonical value or the legacy display label; anything else is
    rejected.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "weight": 70,
                "height": 175,
                "goal": "lose_weight",
                "activity_level": "Moderadamente ativo (exercícios de 3 a 5 vezes por semana)"
            }
        }
    )

    weight: Optional[float] = Field(None, gt=0, description="Weight in kg")
    height: Optional[float] = Field(None, gt=0, description="Height in cm")
    age: Optional[int] = Field(None, gt=0, le=120, description="Age in years")
    goal: Optional[Goal] = None
    calorie_target: Optional[CalorieTarget] = None
    gender: Optional[Gender] = None
    activity_level: Optional[ActivityLevel] = None
    training_preference: Optional[TrainingPreference] = None
    meal_times: Optional[str] = None
    chocolate_preference: Optional[ChocolatePreference] = None

    @field_validator(*ENUM_FIELDS.keys(), mode="before")
    @classmethod
    def parse_enum_label(cls, value: Any, info) -> Any:
        if value is None:
            return None
        member = ENUM_FIELDS[info.field_name].from_label(value)
        if member is None:
            raise ValueError(f"Unknown {info.field_name}: {value}")
        return member

    @field_validator("meal_times", mode="before")
    @classmethod
    def parse_meal_times(cls, value: Any) -> Any:
        if value is None:
            return None
        schedule = parse_meal_schedule(value)
        if schedule is None:
            raise ValueError(f"Unknown meal schedule: {value}")
        return schedule

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly sent by the client, serialised to column values."""
        return self.model_dump(mode="json", exclude_unset=True)


class RegistrationResponse(RegistrationData):
    """Stored registration as returned to the client."""

    user_id: str


class MealSelectionData(BaseModel):
    """Selected items per meal category."""

    breakfast_items: List[str] = Field(default_factory=list)
    lunch_items: List[str] = Field(default_factory=list)
    snack_items: List[str] = Field(default_factory=list)
    dinner_items: List[str] = Field(default_factory=list)

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]) -> "MealSelectionData":
        if row is None:
            return cls()
        return cls(**{name: row.get(name) or [] for name in cls.model_fields})

    def items_for(self, category: str) -> List[str]:
        return getattr(self, f"{category}_items")


class MealItemsUpdate(BaseModel):
    """Replacement item list for one meal category."""

    items: List[str] = Field(..., description="Selected food items")

    @field_validator("items")
    @classmethod
    def dedupe(cls, value: List[str]) -> List[str]:
        seen = []
        for item in value:
            item = item.strip()
            if item and item not in seen:
                seen.append(item)
        return seen


class InvalidMeal(BaseModel):
    category: str
    label: str
    required: int
    selected: int


class EligibilityResponse(BaseModel):
    """Checkout eligibility as computed by the entitlement validator."""

    is_valid: bool
    missing_fields: List[str]
    invalid_meals: List[InvalidMeal]
    message: Optional[str] = None
