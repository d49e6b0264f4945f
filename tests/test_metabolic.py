import pytest

from vitabalance.enums import ActivityLevel, Gender, Goal
from vitabalance.schemas.registration import RegistrationData
from vitabalance.services.metabolic import (
    activity_multiplier,
    calculate_bmr,
    calculate_tdee,
    compute_metabolic_profile,
    round_half_up,
    target_calories,
)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
    assert round_half_up(-2.5) == -2


def test_male_bmr():
    assert calculate_bmr(70, 175, 25, Gender.MALE) == pytest.approx(1724.052)


def test_female_bmr_used_for_female_and_unknown_gender():
    expected = 447.593 + 9.247 * 60 + 3.098 * 165 - 4.330 * 30
    assert calculate_bmr(60, 165, 30, Gender.FEMALE) == pytest.approx(expected)
    assert calculate_bmr(60, 165, 30, None) == pytest.approx(expected)


def test_activity_multiplier_defaults_to_sedentary():
    assert activity_multiplier(ActivityLevel.HIGHLY_ACTIVE) == 1.725
    assert activity_multiplier(None) == 1.2


def test_tdee_and_target_for_weight_loss():
    tdee = calculate_tdee(1724.052, ActivityLevel.MODERATELY_ACTIVE)
    assert tdee == 2672
    assert target_calories(tdee, Goal.LOSE_WEIGHT) == 2172


@pytest.mark.parametrize("goal,expected", [
    (Goal.GAIN_MUSCLE, 2500),
    (Goal.DEFINITION, 1700),
    (Goal.DEFINITION_AND_MUSCLE, 2200),
    (Goal.LOSE_WEIGHT_AND_MUSCLE, 2000),
    (None, 2000),
])
def test_goal_offsets(goal, expected):
    assert target_calories(2000, goal) == expected


def test_compute_metabolic_profile():
    registration = RegistrationData(
        weight=60,
        height=165,
        age=30,
        gender="female",
        goal="massa",
    )
    profile = compute_metabolic_profile(registration)
    assert profile.bmr == pytest.approx(1383.683)
    assert profile.tdee == 1660
    assert profile.target == 2160
