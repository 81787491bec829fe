"""
Deterministic similarity scoring between a source exercise and a candidate.

Points:
    movement pattern    40  equal and set
    muscle overlap      30  scaled by |shared| / |all| muscle groups
    equipment           15  nothing needed or bodyweight, else scaled by
                            how much of the kit is available
    difficulty          10  equal tiers
    category             5  equal and set

Each scaled term is rounded half-up on its own, so scores stored by earlier
runs stay comparable.
"""

import math
from typing import Iterable

from app.models.alternatives import ScoredCandidate
from app.models.exercise import Exercise
from app.settings import settings
from app.utils.taxonomy import (
    BODYWEIGHT,
    DIFFICULTY_LABELS,
    MUSCLE_LABELS,
    PATTERN_LABELS,
)

PATTERN_POINTS = 40
MUSCLE_POINTS = 30
EQUIPMENT_POINTS = 15
DIFFICULTY_POINTS = 10
CATEGORY_POINTS = 5

MAX_SCORE = (
    PATTERN_POINTS + MUSCLE_POINTS + EQUIPMENT_POINTS + DIFFICULTY_POINTS + CATEGORY_POINTS
)

MAX_REASON_CLAUSES = 2


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def needs_no_equipment(exercise: Exercise) -> bool:
    return not exercise.equipment or BODYWEIGHT in exercise.equipment


def calculate_score(
    source: Exercise, candidate: Exercise, available_equipment: Iterable[str]
) -> int:
    available = set(available_equipment)
    score = 0

    if source.movement_pattern and source.movement_pattern == candidate.movement_pattern:
        score += PATTERN_POINTS

    source_muscles = set(source.muscle_groups)
    candidate_muscles = set(candidate.muscle_groups)
    total_unique = len(source_muscles | candidate_muscles)
    if total_unique > 0:
        overlap = len(source_muscles & candidate_muscles)
        score += round_half_up((overlap / total_unique) * MUSCLE_POINTS)

    if needs_no_equipment(candidate):
        score += EQUIPMENT_POINTS
    else:
        matched = sum(1 for eq in candidate.equipment if eq in available)
        score += round_half_up((matched / len(candidate.equipment)) * EQUIPMENT_POINTS)

    if source.difficulty == candidate.difficulty:
        score += DIFFICULTY_POINTS

    if source.category and source.category == candidate.category:
        score += CATEGORY_POINTS

    return score


# ─────────────────────────────────────────
# Reasons
# ─────────────────────────────────────────

REASON_PHRASES: dict[str, dict[str, str]] = {
    "es": {
        "pattern": "mismo patron de {label}",
        "muscles": "trabaja {muscles}",
        "joiner": " y ",
        "bodyweight": "sin equipo necesario",
        "difficulty": "nivel {label}",
        "fallback": "ejercicio similar",
    },
    "en": {
        "pattern": "same {label} pattern",
        "muscles": "works {muscles}",
        "joiner": " and ",
        "bodyweight": "no equipment needed",
        "difficulty": "{label} level",
        "fallback": "similar exercise",
    },
}


def _resolve_locale(locale: str | None) -> str:
    locale = (locale or settings.REASON_LOCALE).lower()
    return locale if locale in REASON_PHRASES else "es"


def generate_reason(
    source: Exercise, candidate: Exercise, locale: str | None = None
) -> str:
    """
    Short explanation built from the strongest shared signals, at most two
    clauses, e.g. "mismo patron de sentadilla, trabaja cuadriceps".
    """
    lang = _resolve_locale(locale)
    phrases = REASON_PHRASES[lang]
    reasons: list[str] = []

    if source.movement_pattern and source.movement_pattern == candidate.movement_pattern:
        label = PATTERN_LABELS[lang].get(source.movement_pattern, source.movement_pattern)
        reasons.append(phrases["pattern"].format(label=label))

    source_muscles = set(source.muscle_groups)
    shared = [m for m in dict.fromkeys(candidate.muscle_groups) if m in source_muscles]
    if shared:
        labels = [MUSCLE_LABELS[lang].get(m, m) for m in shared[:2]]
        reasons.append(phrases["muscles"].format(muscles=phrases["joiner"].join(labels)))

    if BODYWEIGHT in candidate.equipment:
        reasons.append(phrases["bodyweight"])

    if source.difficulty and source.difficulty == candidate.difficulty:
        label = DIFFICULTY_LABELS[lang].get(source.difficulty, source.difficulty)
        reasons.append(phrases["difficulty"].format(label=label))

    if not reasons:
        return phrases["fallback"]

    return ", ".join(reasons[:MAX_REASON_CLAUSES])


def score_candidates(
    source: Exercise,
    candidates: list[Exercise],
    available_equipment: list[str],
    locale: str | None = None,
) -> list[ScoredCandidate]:
    return [
        ScoredCandidate(
            exercise=candidate,
            score=calculate_score(source, candidate, available_equipment),
            reason=generate_reason(source, candidate, locale),
        )
        for candidate in candidates
    ]
