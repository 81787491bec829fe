from typing import Iterable, List

from app.models.alternatives import CandidateFilters
from app.models.exercise import Exercise
from app.repositories.errors import ExerciseRepoError
from app.repositories.exercise import ExerciseRepository
from app.utils.log import logger
from app.utils.taxonomy import BODYWEIGHT


def has_usable_equipment(exercise: Exercise, available_equipment: Iterable[str]) -> bool:
    """
    True when the exercise needs no equipment, or at least one required item
    is bodyweight or available.
    """
    if not exercise.equipment:
        return True

    available = set(available_equipment)
    return any(eq == BODYWEIGHT or eq in available for eq in exercise.equipment)


def find_candidates(
    repo: ExerciseRepository, filters: CandidateFilters, *, limit: int
) -> List[Exercise]:
    source = filters.source_exercise

    try:
        exercises = repo.find_alternative_candidates(
            organization_id=filters.organization_id,
            exclude_id=source.exercise_id,
            movement_pattern=source.movement_pattern,
            difficulty=filters.difficulty_filter,
            limit=limit,
        )
    except ExerciseRepoError:
        logger.exception(f"Error finding candidates for exercise {source.exercise_id}")
        return []

    candidates = [
        ex for ex in exercises if has_usable_equipment(ex, filters.available_equipment)
    ]

    logger.debug(
        f"{len(candidates)}/{len(exercises)} candidates for {source.exercise_id} "
        f"passed the equipment filter"
    )
    return candidates
