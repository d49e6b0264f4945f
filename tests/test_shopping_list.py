from vitabalance.enums import Goal, Priority
from vitabalance.services.shopping_list import BASE_TIPS, GOAL_TIPS, build_shopping_list


def priorities(shopping_list, category):
    group = next(c for c in shopping_list.categories if c.name == category)
    return {item.name: item.priority for item in group.items}


def test_categories_in_fixed_order():
    shopping_list = build_shopping_list(None)
    assert [c.name for c in shopping_list.categories] == [
        "Proteínas",
        "Carboidratos",
        "Gorduras Saudáveis",
        "Vegetais e Frutas",
        "Temperos e Condimentos",
    ]
    assert shopping_list.tips == BASE_TIPS


def test_base_priorities_without_goal():
    shopping_list = build_shopping_list(None)
    assert priorities(shopping_list, "Vegetais e Frutas")["Limão"] == Priority.LOW
    assert priorities(shopping_list, "Proteínas")["Atum em Água"] == Priority.MEDIUM


def test_weight_loss_promotes_all_produce():
    shopping_list = build_shopping_list(Goal.LOSE_WEIGHT)
    produce = priorities(shopping_list, "Vegetais e Frutas")
    assert set(produce.values()) == {Priority.HIGH}
    assert shopping_list.tips == BASE_TIPS + [GOAL_TIPS[Goal.LOSE_WEIGHT]]


def test_definition_promotes_lean_proteins_only():
    proteins = priorities(build_shopping_list(Goal.DEFINITION), "Proteínas")
    assert proteins["Atum em Água"] == Priority.HIGH
    assert proteins["Peito de Frango"] == Priority.HIGH
    assert proteins["Tilápia"] == Priority.MEDIUM


def test_muscle_gain_keeps_other_categories_untouched():
    base = build_shopping_list(None)
    gain = build_shopping_list(Goal.GAIN_MUSCLE)
    assert priorities(gain, "Carboidratos") == priorities(base, "Carboidratos")
    assert priorities(gain, "Proteínas")["Carne Vermelha Magra"] == Priority.MEDIUM
    assert len(gain.tips) == len(BASE_TIPS) + 1


def test_goal_without_overrides():
    shopping_list = build_shopping_list(Goal.LOSE_WEIGHT_AND_MUSCLE)
    assert shopping_list == build_shopping_list(None)
