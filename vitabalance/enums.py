"""
VitaBalance API - Domain Enums.

Closed value sets for every choice a user makes during registration, plus
the one place where legacy display labels (the Portuguese strings the
web form used to store) are translated into them. Nothing outside this
module matches on display text.
"""

from enum import Enum
from typing import Dict, Optional, Tuple


class LabeledEnum(str, Enum):
    """
    String enum that can be parsed from its value or a legacy label.

    Subclasses override ``_labels`` (member value -> legacy display label).
    """

    @classmethod
    def _labels(cls) -> Dict[str, str]:
        return {}

    @property
    def label(self) -> str:
        """Legacy display label for this member."""
        return self._labels().get(self.value, self.value)

    @classmethod
    def from_label(cls, raw: Optional[str]):
        """
        Parse a canonical value or an exact legacy label.

        Args:
            raw: Stored or submitted value.

        Returns:
            Matching member, or None when raw is empty or unknown.
        """
        if raw is None:
            return None
        if isinstance(raw, cls):
            return raw
        text = str(raw).strip()
        if not text:
            return None
        for member in cls:
            if text == member.value or text == member.label:
                return member
        return None


class Gender(LabeledEnum):
    MALE = "male"
    FEMALE = "female"


class Goal(LabeledEnum):
    """Primary objective; drives calorie offset, macros and shopping priorities."""

    LOSE_WEIGHT = "lose_weight"
    GAIN_MUSCLE = "gain_muscle"
    DEFINITION_AND_MUSCLE = "definition_and_muscle"
    DEFINITION = "definition"
    LOSE_WEIGHT_AND_MUSCLE = "lose_weight_and_muscle"

    @classmethod
    def _labels(cls) -> Dict[str, str]:
        return _GOAL_LABELS


_GOAL_LABELS = {
    "lose_weight": "emagrecer",
    "gain_muscle": "massa",
    "definition_and_muscle": "definicao_massa",
    "definition": "definicao",
    "lose_weight_and_muscle": "emagrecer_massa",
}


class CalorieTarget(LabeledEnum):
    """Calorie range the user believes they want; informational only."""

    UNKNOWN = "unknown"
    RANGE_1200_1500 = "1200_1500"
    RANGE_1600_1900 = "1600_1900"
    RANGE_2000_2300 = "2000_2300"
    RANGE_2400_2700 = "2400_2700"

    @classmethod
    def _labels(cls) -> Dict[str, str]:
        return {"unknown": "nao_sei"}


class ActivityLevel(LabeledEnum):
    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    HIGHLY_ACTIVE = "highly_active"
    EXTREMELY_ACTIVE = "extremely_active"

    @classmethod
    def _labels(cls) -> Dict[str, str]:
        return _ACTIVITY_LABELS

    @classmethod
    def from_label(cls, raw: Optional[str]):
        """
        Parse an activity level.

        Legacy labels carry a trailing description, e.g.
        "Moderadamente ativo (exercícios de 3 a 5 vezes por semana)", so
        they are matched by their leading phrase.
        """
        member = super().from_label(raw)
        if member is not None or raw is None:
            return member
        text = str(raw)
        for value, prefix in _ACTIVITY_PREFIXES:
            if prefix in text:
                return cls(value)
        return None


_ACTIVITY_LABELS = {
    "sedentary": "Sedentário (pouca ou nenhuma atividade física)",
    "lightly_active": "Levemente ativo (exercícios 1 a 3 vezes por semana)",
    "moderately_active": "Moderadamente ativo (exercícios de 3 a 5 vezes por semana)",
    "highly_active": "Altamente ativo (exercícios de 5 a 7 dias por semana)",
    "extremely_active": "Extremamente ativo (exercícios todos os dias e faz trabalho braçal)",
}

_ACTIVITY_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("sedentary", "Sedentário"),
    ("lightly_active", "Levemente ativo"),
    ("moderately_active", "Moderadamente ativo"),
    ("highly_active", "Altamente ativo"),
    ("extremely_active", "Extremamente ativo"),
)


class TrainingPreference(LabeledEnum):
    GYM = "gym"
    HOME = "home"
    NONE = "none"

    @classmethod
    def _labels(cls) -> Dict[str, str]:
        return {
            "gym": "Sim, Treino na academia",
            "home": "Sim, Treino em casa",
            "none": "Não",
        }


class ChocolatePreference(LabeledEnum):
    NONE = "none"
    BIS = "bis"
    PRESTIGIO = "prestigio"
    TRENTO = "trento"
    BATON = "baton"
    CHOKITO = "chokito"
    SONHO_DE_VALSA = "sonho_de_valsa"

    @classmethod
    def _labels(cls) -> Dict[str, str]:
        return _CHOCOLATE_LABELS

    @property
    def treat(self) -> Optional[str]:
        """Name of the chocolate bar, or None when the user declined."""
        return _CHOCOLATE_TREATS.get(self.value)


_CHOCOLATE_LABELS = {
    "none": "Não, obrigado",
    "bis": "Sim, um Bis",
    "prestigio": "Sim, um Prestígio",
    "trento": "Sim, um Trento",
    "baton": "Sim, um Baton",
    "chokito": "Sim, um Chokito",
    "sonho_de_valsa": "Sim, um Sonho de Valsa",
}

_CHOCOLATE_TREATS = {
    "bis": "Bis",
    "prestigio": "Prestígio",
    "trento": "Trento",
    "baton": "Baton",
    "chokito": "Chokito",
    "sonho_de_valsa": "Sonho de Valsa",
}


class Intensity(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def from_provider(cls, raw: Optional[str]) -> "PaymentStatus":
        """
        Collapse a Mercado Pago payment status into the three stored states.

        Args:
            raw: Provider status (approved, pending, in_process, rejected, ...).

        Returns:
            PaymentStatus: Normalised status.
        """
        if raw == "approved":
            return cls.APPROVED
        if raw in _PROVIDER_PENDING:
            return cls.PENDING
        return cls.REJECTED


_PROVIDER_PENDING = frozenset({"pending", "in_process", "authorized", "in_mediation"})


# Meal schedules offered by the form; times are breakfast, morning snack,
# lunch, afternoon snack and dinner.
CUSTOM_SCHEDULE = "custom"
CUSTOM_SCHEDULE_LABEL = "Tenho meu próprio horário"
MEAL_SCHEDULES: Tuple[str, ...] = (
    "05:30, 08:30, 12:00, 15:00, 19:00",
    "06:00, 09:00, 12:00, 15:00, 19:00",
    "06:30, 09:30, 13:00, 16:00, 20:00",
    "07:00, 10:00, 12:30, 15:30, 19:30",
    "07:30, 10:30, 12:00, 15:00, 19:00",
    "08:00, 11:00, 13:00, 16:00, 20:30",
    "09:00, 11:00, 13:00, 16:00, 21:00",
)


def parse_meal_schedule(raw: Optional[str]) -> Optional[str]:
    """
    Normalise a meal-times selection.

    Args:
        raw: One of the fixed schedules, "custom" or its legacy label.

    Returns:
        The schedule string, CUSTOM_SCHEDULE, or None when unknown.
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if text in (CUSTOM_SCHEDULE, CUSTOM_SCHEDULE_LABEL):
        return CUSTOM_SCHEDULE
    normalised = ", ".join(part.strip() for part in text.split(","))
    if normalised in MEAL_SCHEDULES:
        return normalised
    return None
