"""
VitaBalance API - Shopping List Builder.

Static grocery catalog with per-item priorities, raised for the items that
matter most to the user's goal.
"""

from typing import Callable, Dict, List, Optional, Tuple

from vitabalance.enums import Goal, Priority
from vitabalance.schemas.plan import ShoppingCategory, ShoppingItem, ShoppingList

H, M, L = Priority.HIGH, Priority.MEDIUM, Priority.LOW

PROTEINS = "Proteínas"
PRODUCE = "Vegetais e Frutas"

BASE_CATALOG: List[Tuple[str, List[Tuple[str, Priority]]]] = [
    (PROTEINS, [
        ("Peito de Frango", H),
        ("Ovos", H),
        ("Whey Protein", H),
        ("Carne Vermelha Magra", M),
        ("Atum em Água", M),
        ("Tilápia", M),
    ]),
    ("Carboidratos", [
        ("Arroz Integral", H),
        ("Batata Doce", H),
        ("Aveia", H),
        ("Massa Integral", M),
        ("Pão Integral", M),
        ("Quinoa", L),
    ]),
    ("Gorduras Saudáveis", [
        ("Azeite de Oliva Extra Virgem", H),
        ("Abacate", H),
        ("Castanha do Pará", H),
        ("Amêndoas", M),
        ("Chia", M),
        ("Linhaça", M),
    ]),
    (PRODUCE, [
        ("Brócolis", H),
        ("Espinafre", H),
        ("Banana", H),
        ("Maçã", M),
        ("Cenoura", M),
        ("Tomate", M),
        ("Laranja", M),
        ("Limão", L),
    ]),
    ("Temperos e Condimentos", [
        ("Sal Marinho", H),
        ("Pimenta do Reino", H),
        ("Alho", H),
        ("Cebola", H),
        ("Orégano", M),
        ("Manjericão", M),
        ("Curry", L),
        ("Açafrão", L),
    ]),
]

BASE_TIPS = [
    "Priorize alimentos frescos e da estação",
    "Compare preços entre marcas",
    "Verifique as datas de validade",
    "Compre primeiro os itens de alta prioridade",
]

GOAL_TIPS = {
    Goal.GAIN_MUSCLE: "Mantenha estoque extra de proteínas e carboidratos",
    Goal.LOSE_WEIGHT: "Priorize vegetais e proteínas magras",
    Goal.DEFINITION: "Foque em alimentos com alto valor nutricional",
}


def _name_contains(*needles: str) -> Callable[[str], bool]:
    return lambda name: any(needle in name for needle in needles)


# goal -> (category, item predicate) whose matches are promoted to high priority
PRIORITY_OVERRIDES: Dict[Goal, Tuple[str, Callable[[str], bool]]] = {
    Goal.GAIN_MUSCLE: (PROTEINS, _name_contains("Frango", "Ovos", "Whey")),
    Goal.LOSE_WEIGHT: (PRODUCE, lambda name: True),
    Goal.DEFINITION: (PROTEINS, _name_contains("Frango", "Atum")),
}


def build_shopping_list(goal: Optional[Goal]) -> ShoppingList:
    """
    Build the categorised shopping list for a goal.

    Args:
        goal: User goal; goals without overrides get the base priorities.

    Returns:
        ShoppingList: Five categories in fixed order plus shopping tips.
    """
    override = PRIORITY_OVERRIDES.get(goal)
    categories = []
    for category_name, items in BASE_CATALOG:
        promoted = []
        for name, priority in items:
            if override and override[0] == category_name and override[1](name):
                priority = Priority.HIGH
            promoted.append(ShoppingItem(name=name, priority=priority))
        categories.append(ShoppingCategory(name=category_name, items=promoted))

    tips = list(BASE_TIPS)
    if goal in GOAL_TIPS:
        tips.append(GOAL_TIPS[goal])

    return ShoppingList(categories=categories, tips=tips)
