"""
VitaBalance API - Training Plan Builder.

Deterministic weekly workout derived from activity level and training
preference. Each workout type has a small exercise catalog; exercises are
drawn positionally, wrapping around the catalog when a day needs more.
"""

from typing import Dict, List, NamedTuple, Optional

from vitabalance.enums import ActivityLevel, Intensity, TrainingPreference
from vitabalance.schemas.plan import Exercise, TrainingDay, TrainingPlan


class TrainingVolume(NamedTuple):
    days_per_week: int
    exercises_per_day: int
    intensity: Intensity


class ExerciseTemplate(NamedTuple):
    names: List[str]
    reps: str
    rest: str
    notes: List[str]


TRAINING_VOLUME: Dict[ActivityLevel, TrainingVolume] = {
    ActivityLevel.SEDENTARY: TrainingVolume(2, 4, Intensity.BEGINNER),
    ActivityLevel.LIGHTLY_ACTIVE: TrainingVolume(3, 5, Intensity.BEGINNER),
    ActivityLevel.MODERATELY_ACTIVE: TrainingVolume(4, 6, Intensity.INTERMEDIATE),
    ActivityLevel.HIGHLY_ACTIVE: TrainingVolume(5, 8, Intensity.ADVANCED),
    ActivityLevel.EXTREMELY_ACTIVE: TrainingVolume(6, 10, Intensity.ADVANCED),
}

SETS_BY_INTENSITY = {
    TrainingPreference.GYM: {Intensity.BEGINNER: 3, Intensity.INTERMEDIATE: 4, Intensity.ADVANCED: 5},
    TrainingPreference.HOME: {Intensity.BEGINNER: 2, Intensity.INTERMEDIATE: 3, Intensity.ADVANCED: 4},
}

GYM_WORKOUTS: Dict[str, ExerciseTemplate] = {
    "Peito e Tríceps": ExerciseTemplate(
        ["Supino Reto", "Crucifixo", "Extensão de Tríceps", "Supino Inclinado"],
        "12-15", "60s",
        ["Mantenha os cotovelos alinhados", "Respiração controlada"],
    ),
    "Costas e Bíceps": ExerciseTemplate(
        ["Puxada na Frente", "Remada Baixa", "Rosca Direta", "Rosca Alternada"],
        "12-15", "60s",
        ["Mantenha as costas retas", "Controle o movimento"],
    ),
    "Pernas": ExerciseTemplate(
        ["Agachamento Livre", "Leg Press", "Cadeira Extensora", "Mesa Flexora"],
        "10-12", "90s",
        ["Joelhos alinhados com os pés", "Desça de forma controlada"],
    ),
    "Ombros e Abdômen": ExerciseTemplate(
        ["Desenvolvimento com Halteres", "Elevação Lateral", "Abdominal Supra", "Prancha"],
        "12-15", "60s",
        ["Não eleve os ombros em excesso", "Core ativado"],
    ),
    "Full Body": ExerciseTemplate(
        ["Levantamento Terra", "Supino Reto", "Remada Curvada", "Agachamento Livre"],
        "8-12", "90s",
        ["Priorize a técnica sobre a carga", "Respiração controlada"],
    ),
    "Cardio e Core": ExerciseTemplate(
        ["Esteira Intervalada", "Bicicleta Ergométrica", "Abdominal Infra", "Prancha Lateral"],
        "30-45s", "30s",
        ["Mantenha a frequência cardíaca elevada", "Core ativado"],
    ),
}

HOME_WORKOUTS: Dict[str, ExerciseTemplate] = {
    "Parte Superior": ExerciseTemplate(
        ["Flexão de Braço", "Dips em Cadeira", "Pike Push-up", "Superman"],
        "10-12", "45s",
        ["Mantenha o core ativado", "Respiração controlada"],
    ),
    "Parte Inferior": ExerciseTemplate(
        ["Agachamento", "Afundo", "Elevação de Panturrilha", "Ponte"],
        "15-20", "45s",
        ["Mantenha os joelhos alinhados", "Core ativado"],
    ),
    "Core e Cardio": ExerciseTemplate(
        ["Polichinelo", "Mountain Climber", "Prancha", "Abdominal Bicicleta"],
        "30-45s", "30s",
        ["Ritmo constante", "Respiração controlada"],
    ),
    "Full Body": ExerciseTemplate(
        ["Burpee", "Agachamento com Salto", "Flexão de Braço", "Prancha com Toque no Ombro"],
        "10-12", "45s",
        ["Priorize a técnica", "Pausas curtas"],
    ),
    "Mobilidade": ExerciseTemplate(
        ["Rotação de Quadril", "Gato-Camelo", "Alongamento de Posterior", "Mobilidade de Tornozelo"],
        "8-10", "30s",
        ["Movimentos lentos e amplos", "Sem dor"],
    ),
    "Resistência": ExerciseTemplate(
        ["Agachamento Isométrico", "Flexão Inclinada", "Afundo Alternado", "Prancha"],
        "20-25", "30s",
        ["Mantenha a forma até o fim da série", "Respiração controlada"],
    ),
}

WARM_UP = [
    "Mobilidade articular - 3 minutos",
    "Alongamento dinâmico - 4 minutos",
    "Exercício leve de cardio - 3 minutos",
]

COOL_DOWN = [
    "Alongamento estático - 5 minutos",
    "Respiração e relaxamento - 2 minutos",
]

DAY_TIPS = [
    "Mantenha-se hidratado durante o treino",
    "Foque na execução correta dos movimentos",
    "Ajuste as cargas conforme necessário",
]

NOT_INCLUDED_MESSAGE = (
    "Training is not part of this plan. Update your training preference to add workouts."
)


def session_minutes(exercises_per_day: int) -> int:
    """Estimated session length: five minutes per exercise plus warm-up and cool-down."""
    return exercises_per_day * 5 + 10


def _build_day(
    index: int,
    workout_type: str,
    template: ExerciseTemplate,
    volume: TrainingVolume,
    sets: int,
) -> TrainingDay:
    exercises = [
        Exercise(
            name=template.names[j % len(template.names)],
            sets=sets,
            reps=template.reps,
            rest=template.rest,
            notes=list(template.notes),
        )
        for j in range(volume.exercises_per_day)
    ]
    return TrainingDay(
        day=index + 1,
        workout_type=workout_type,
        intensity=volume.intensity,
        exercises=exercises,
        warm_up=list(WARM_UP),
        cool_down=list(COOL_DOWN),
        tips=list(DAY_TIPS),
        duration_minutes=session_minutes(volume.exercises_per_day),
    )


def build_training_plan(
    activity_level: Optional[ActivityLevel],
    preference: Optional[TrainingPreference],
) -> TrainingPlan:
    """
    Build the weekly training plan.

    Args:
        activity_level: Drives days, exercises per day and intensity;
            absent means sedentary.
        preference: Gym or home catalog; absent means home, NONE means the
            plan carries no workouts.

    Returns:
        TrainingPlan: ``included=False`` with zero days when the user opted out.
    """
    if preference == TrainingPreference.NONE:
        return TrainingPlan(
            included=False,
            preference=TrainingPreference.NONE,
            days_per_week=0,
            message=NOT_INCLUDED_MESSAGE,
        )

    preference = preference or TrainingPreference.HOME
    volume = TRAINING_VOLUME[activity_level or ActivityLevel.SEDENTARY]
    catalog = GYM_WORKOUTS if preference == TrainingPreference.GYM else HOME_WORKOUTS
    workout_types = list(catalog)
    sets = SETS_BY_INTENSITY[preference][volume.intensity]

    days = []
    for i in range(volume.days_per_week):
        workout_type = workout_types[i % len(workout_types)]
        days.append(_build_day(i, workout_type, catalog[workout_type], volume, sets))

    return TrainingPlan(
        included=True,
        preference=preference,
        days_per_week=volume.days_per_week,
        exercises_per_day=volume.exercises_per_day,
        intensity=volume.intensity,
        days=days,
    )
