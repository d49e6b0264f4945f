"""
VitaBalance API - Plan Generator.

Turns a registration snapshot into the full personalised plan: daily meals
with goal-scaled macros, the weekly training plan and the shopping list.
Pure and deterministic; the caller loads the registration.
"""

import logging
import math
from typing import Dict, List, NamedTuple, Optional, Tuple

from vitabalance.enums import CUSTOM_SCHEDULE, ChocolatePreference, Goal
from vitabalance.schemas.plan import FoodOptionGroup, Macros, Meal, PlanMetrics, PlanResponse
from vitabalance.schemas.registration import RegistrationData
from vitabalance.services.metabolic import compute_metabolic_profile, round_half_up
from vitabalance.services.shopping_list import build_shopping_list
from vitabalance.services.training_plan import build_training_plan
from vitabalance.utils.errors import PlanUnavailable

logger = logging.getLogger(__name__)


class MealTemplate(NamedTuple):
    id: str
    name: str
    share: float
    macros: Tuple[int, int, int]  # protein, carbs, fat (g)
    options: List[Tuple[str, List[str]]]


DEFAULT_CHOCOLATE = "Chocolate 70% (2 quadrados)"
CHOCOLATE_SLOT = "{chocolate}"

MEAL_TEMPLATES: List[MealTemplate] = [
    MealTemplate("breakfast", "Café da Manhã", 0.25, (20, 40, 10), [
        ("Proteínas", ["Ovos (2 unidades)", "Iogurte (200ml)", "Queijo (2 fatias)"]),
        ("Carboidratos", ["Pão Integral (2 fatias)", "Aveia (4 colheres)", "Tapioca (2 unidades)"]),
        ("Complementos", ["Banana (1 unidade)", "Mel (1 colher)", "Amendoim (1 punhado)"]),
    ]),
    MealTemplate("morning_snack", "Lanche da Manhã", 0.15, (15, 30, 8), [
        ("Proteínas", ["Whey Protein (1 scoop)", "Mix de Castanhas (30g)", "Queijo Cottage (100g)"]),
        ("Carboidratos", ["Maçã (1 unidade)", "Banana (1 unidade)", "Granola (2 colheres)"]),
        ("Complementos", ["Mel (1 colher)", "Pasta de Amendoim (1 colher)", "Frutas Vermelhas (100g)"]),
    ]),
    MealTemplate("lunch", "Almoço", 0.35, (35, 50, 15), [
        ("Proteínas", ["Frango Grelhado (150g)", "Carne Magra (150g)", "Peixe (150g)"]),
        ("Carboidratos", ["Arroz Integral (5 colheres)", "Batata Doce (150g)", "Macarrão Integral (100g)"]),
        ("Vegetais", ["Salada Verde (à vontade)", "Legumes Cozidos (100g)", "Vegetais Crus (100g)"]),
    ]),
    MealTemplate("afternoon_snack", "Lanche da Tarde", 0.15, (15, 25, 8), [
        ("Proteínas", ["Whey Protein (1 scoop)", "Mix de Castanhas (30g)", "Queijo (2 fatias)"]),
        ("Carboidratos", ["Fruta (1 unidade)", "Biscoito Integral (4 unidades)", "Barra de Cereal (1 unidade)"]),
        ("Complementos", ["Mel (1 colher)", "Pasta de Amendoim (1 colher)", CHOCOLATE_SLOT]),
    ]),
    MealTemplate("dinner", "Jantar", 0.25, (30, 35, 12), [
        ("Proteínas", ["Frango Grelhado (120g)", "Peixe Assado (120g)", "Omelete (3 ovos)"]),
        ("Carboidratos", ["Arroz Integral (3 colheres)", "Batata Doce (100g)", "Quinoa (4 colheres)"]),
        ("Vegetais", ["Brócolis (100g)", "Legumes Cozidos (100g)", "Salada Verde (à vontade)"]),
    ]),
]

DEFAULT_MEAL_TIMES = ["07:00", "10:00", "13:00", "16:00", "19:00"]

# protein, carbs, fat
MACRO_MULTIPLIERS: Dict[Goal, Tuple[float, float, float]] = {
    Goal.GAIN_MUSCLE: (1.3, 1.2, 1.0),
    Goal.LOSE_WEIGHT: (1.0, 0.8, 0.8),
    Goal.DEFINITION: (1.2, 0.9, 0.9),
}

WATER_LITERS = 2.5


def meal_calories(target: int) -> List[int]:
    """Split the daily target across the five meals, each share rounded independently."""
    return [round_half_up(target * template.share) for template in MEAL_TEMPLATES]


def scale_macros(base: Tuple[int, int, int], goal: Optional[Goal]) -> Macros:
    protein_x, carbs_x, fat_x = MACRO_MULTIPLIERS.get(goal, (1.0, 1.0, 1.0))
    protein, carbs, fat = base
    return Macros(
        protein=round_half_up(protein * protein_x),
        carbs=round_half_up(carbs * carbs_x),
        fat=round_half_up(fat * fat_x),
    )


def resolve_meal_times(meal_times: Optional[str]) -> List[str]:
    """
    Map a stored schedule onto the five meal slots.

    A custom or missing schedule uses the defaults; a short or partially
    empty schedule falls back per slot.
    """
    if not meal_times or meal_times == CUSTOM_SCHEDULE:
        return list(DEFAULT_MEAL_TIMES)
    parts = [part.strip() for part in meal_times.split(",")]
    return [
        parts[i] if i < len(parts) and parts[i] else default
        for i, default in enumerate(DEFAULT_MEAL_TIMES)
    ]


def chocolate_item(preference: Optional[ChocolatePreference]) -> Optional[str]:
    """Afternoon-snack treat: the chosen bar, the default when unset, nothing when declined."""
    if preference is None:
        return DEFAULT_CHOCOLATE
    if preference.treat is None:
        return None
    return f"{preference.treat} (1 unidade)"


def build_meals(
    target: int,
    goal: Optional[Goal],
    meal_times: Optional[str] = None,
    chocolate: Optional[ChocolatePreference] = None,
) -> List[Meal]:
    """
    Build the five daily meals.

    Args:
        target: Daily calorie target.
        goal: Scales the base macros.
        meal_times: Stored meal schedule.
        chocolate: Fills the afternoon-snack treat slot.

    Returns:
        List[Meal]: Breakfast, morning snack, lunch, afternoon snack, dinner.
    """
    times = resolve_meal_times(meal_times)
    calories = meal_calories(target)
    treat = chocolate_item(chocolate)

    meals = []
    for template, time, kcal in zip(MEAL_TEMPLATES, times, calories):
        options = []
        for title, items in template.options:
            resolved = [treat if item == CHOCOLATE_SLOT else item for item in items]
            options.append(FoodOptionGroup(title=title, items=[item for item in resolved if item]))
        meals.append(Meal(
            id=template.id,
            name=template.name,
            time=time,
            calories=kcal,
            macros=scale_macros(template.macros, goal),
            options=options,
        ))
    return meals


def has_biometrics(registration: RegistrationData) -> bool:
    """Weight, height and age all present, finite and positive."""
    for value in (registration.weight, registration.height, registration.age):
        if value is None or not math.isfinite(value) or value <= 0:
            return False
    return True


def generate_plan(registration: Optional[RegistrationData]) -> PlanResponse:
    """
    Generate the complete personalised plan.

    Args:
        registration: Stored registration snapshot.

    Returns:
        PlanResponse: Metrics, meals, training plan and shopping list.

    Raises:
        PlanUnavailable: No registration, or weight/height/age missing.
    """
    if registration is None:
        raise PlanUnavailable(detail="No registration found")
    if not has_biometrics(registration):
        raise PlanUnavailable(detail="Weight, height and age are required")

    profile = compute_metabolic_profile(registration)
    logger.debug(f"Metabolic profile: bmr={profile.bmr:.1f} tdee={profile.tdee} target={profile.target}")

    return PlanResponse(
        goal=registration.goal,
        metrics=PlanMetrics(
            bmr=round(profile.bmr, 2),
            tdee=profile.tdee,
            daily_calories=profile.target,
            water_liters=WATER_LITERS,
            meals_per_day=len(MEAL_TEMPLATES),
        ),
        meals=build_meals(
            profile.target,
            registration.goal,
            registration.meal_times,
            registration.chocolate_preference,
        ),
        training=build_training_plan(
            registration.activity_level,
            registration.training_preference,
        ),
        shopping_list=build_shopping_list(registration.goal),
    )
