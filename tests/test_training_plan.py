import pytest

from vitabalance.enums import ActivityLevel, Intensity, TrainingPreference
from vitabalance.services.training_plan import (
    COOL_DOWN,
    NOT_INCLUDED_MESSAGE,
    WARM_UP,
    build_training_plan,
    session_minutes,
)


@pytest.mark.parametrize("level,days,exercises,intensity", [
    (ActivityLevel.SEDENTARY, 2, 4, Intensity.BEGINNER),
    (ActivityLevel.LIGHTLY_ACTIVE, 3, 5, Intensity.BEGINNER),
    (ActivityLevel.MODERATELY_ACTIVE, 4, 6, Intensity.INTERMEDIATE),
    (ActivityLevel.HIGHLY_ACTIVE, 5, 8, Intensity.ADVANCED),
    (ActivityLevel.EXTREMELY_ACTIVE, 6, 10, Intensity.ADVANCED),
])
def test_volume_by_activity_level(level, days, exercises, intensity):
    plan = build_training_plan(level, TrainingPreference.GYM)
    assert plan.days_per_week == days
    assert len(plan.days) == days
    assert plan.exercises_per_day == exercises
    assert plan.intensity == intensity
    assert all(len(day.exercises) == exercises for day in plan.days)
    assert all(day.duration_minutes == exercises * 5 + 10 for day in plan.days)


def test_session_minutes():
    assert session_minutes(4) == 30
    assert session_minutes(10) == 60


def test_gym_plan_for_moderately_active():
    plan = build_training_plan(ActivityLevel.MODERATELY_ACTIVE, TrainingPreference.GYM)

    assert plan.included is True
    assert [day.workout_type for day in plan.days] == [
        "Peito e Tríceps", "Costas e Bíceps", "Pernas", "Ombros e Abdômen",
    ]
    first = plan.days[0]
    assert first.day == 1
    assert [exercise.name for exercise in first.exercises] == [
        "Supino Reto", "Crucifixo", "Extensão de Tríceps", "Supino Inclinado",
        "Supino Reto", "Crucifixo",
    ]
    assert all(exercise.sets == 4 for exercise in first.exercises)
    assert first.warm_up == WARM_UP
    assert first.cool_down == COOL_DOWN
    assert len(first.tips) == 3


def test_home_sets_by_intensity():
    beginner = build_training_plan(ActivityLevel.SEDENTARY, TrainingPreference.HOME)
    advanced = build_training_plan(ActivityLevel.HIGHLY_ACTIVE, TrainingPreference.HOME)
    assert beginner.days[0].exercises[0].sets == 2
    assert advanced.days[0].exercises[0].sets == 4
    assert beginner.days[0].workout_type == "Parte Superior"
    assert beginner.days[0].exercises[0].name == "Flexão de Braço"


def test_opted_out_plan_has_no_days():
    plan = build_training_plan(ActivityLevel.EXTREMELY_ACTIVE, TrainingPreference.NONE)
    assert plan.included is False
    assert plan.preference == TrainingPreference.NONE
    assert plan.days_per_week == 0
    assert plan.days == []
    assert plan.message == NOT_INCLUDED_MESSAGE


def test_defaults_without_level_or_preference():
    plan = build_training_plan(None, None)
    assert plan.included is True
    assert plan.preference == TrainingPreference.HOME
    assert plan.days_per_week == 2
    assert plan.intensity == Intensity.BEGINNER
    assert plan.days[0].duration_minutes == 30


def test_six_day_plan_uses_every_workout_type():
    plan = build_training_plan(ActivityLevel.EXTREMELY_ACTIVE, TrainingPreference.GYM)
    assert len({day.workout_type for day in plan.days}) == 6
    assert plan.days[-1].workout_type == "Cardio e Core"
    assert plan.days[-1].exercises[0].sets == 5
