# scripts/seed_data.py
import uuid
from typing import List

from app.models import Exercise, OrganizationAiUsage, OrganizationEquipment
from app.settings import settings
from app.utils import dates, db

# Stable ids so re-seeding overwrites rather than duplicates
NAMESPACE = uuid.UUID("6f1c1f4e-2a7b-4d8e-9a51-3c0de5a1f0b2")


def exercise_id_for(slug: str) -> str:
    return str(uuid.uuid5(NAMESPACE, slug))


# slug, name, name_es, category, pattern, muscles, equipment, difficulty
GLOBAL_EXERCISES: list[tuple] = [
    ("back-squat", "Back Squat", "Sentadilla trasera", "strength", "squat",
     ["quadriceps", "glutes"], ["barbell"], "intermediate"),
    ("goblet-squat", "Goblet Squat", "Sentadilla goblet", "strength", "squat",
     ["quadriceps", "glutes"], ["dumbbell"], "beginner"),
    ("air-squat", "Air Squat", "Sentadilla libre", "strength", "squat",
     ["quadriceps", "hamstrings"], ["bodyweight"], "intermediate"),
    ("leg-press", "Leg Press", "Prensa de piernas", "strength", "squat",
     ["quadriceps", "glutes"], ["machine"], "beginner"),
    ("romanian-deadlift", "Romanian Deadlift", "Peso muerto rumano", "strength", "hinge",
     ["hamstrings", "glutes"], ["barbell"], "intermediate"),
    ("kettlebell-swing", "Kettlebell Swing", "Swing con kettlebell", "conditioning", "hinge",
     ["hamstrings", "glutes"], ["kettlebell"], "intermediate"),
    ("bench-press", "Bench Press", "Press de banca", "strength", "horizontal_push",
     ["chest", "triceps", "shoulders"], ["barbell", "bench"], "intermediate"),
    ("dumbbell-bench-press", "Dumbbell Bench Press", "Press de banca con mancuernas",
     "strength", "horizontal_push", ["chest", "triceps"], ["dumbbell", "bench"], "beginner"),
    ("push-up", "Push-up", "Flexiones", "strength", "horizontal_push",
     ["chest", "triceps", "shoulders"], ["bodyweight"], "beginner"),
    ("pull-up", "Pull-up", "Dominadas", "strength", "vertical_pull",
     ["back", "biceps"], ["pull_up_bar"], "advanced"),
    ("lat-pulldown", "Lat Pulldown", "Jalon al pecho", "strength", "vertical_pull",
     ["back", "biceps"], ["cable"], "beginner"),
    ("overhead-press", "Overhead Press", "Press militar", "strength", "vertical_push",
     ["shoulders", "triceps"], ["barbell"], "intermediate"),
]


def build_global_exercises() -> List[Exercise]:
    ts = dates.now()
    return [
        Exercise(
            PK=db.build_catalog_pk(None),
            SK=db.build_exercise_sk(exercise_id_for(slug)),
            name=name,
            name_es=name_es,
            name_en=name,
            category=category,
            movement_pattern=pattern,
            muscle_groups=muscles,
            equipment=equipment,
            difficulty=difficulty,
            created_at=ts,
            updated_at=ts,
        )
        for slug, name, name_es, category, pattern, muscles, equipment, difficulty in GLOBAL_EXERCISES
    ]


def build_ai_usage(organization_id: str) -> OrganizationAiUsage:
    ts = dates.now()
    period_start, period_end = dates.month_period(ts.date())
    return OrganizationAiUsage(
        PK=db.build_org_pk(organization_id),
        organization_id=organization_id,
        monthly_token_limit=settings.DEFAULT_AI_TOKEN_LIMIT,
        max_requests_per_user_daily=settings.DEFAULT_AI_USER_DAILY_REQUESTS,
        period_start_date=period_start,
        period_end_date=period_end,
        created_at=ts,
        updated_at=ts,
    )


def build_equipment(organization_id: str) -> OrganizationEquipment:
    """A small studio: no barbells."""
    return OrganizationEquipment(
        PK=db.build_org_pk(organization_id),
        organization_id=organization_id,
        available_equipment=["dumbbell", "kettlebell", "bodyweight", "bench", "pull_up_bar"],
    )
