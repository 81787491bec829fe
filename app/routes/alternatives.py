import time

from fastapi import APIRouter, Depends, HTTPException

from app.alternatives.cache import AlternativesCache
from app.alternatives.engine import AlternativesEngine, Ranker
from app.alternatives.ranker import OpenAIRanker
from app.models.alternatives import (
    AlternativesOptions,
    AlternativesRequest,
    AlternativesResponse,
)
from app.models.organization import OrganizationEquipment
from app.repositories.cache import (
    AlternativesCacheRepository,
    DynamoAlternativesCacheRepository,
)
from app.repositories.errors import (
    ExerciseNotFoundError,
    ExerciseRepoError,
    OrganizationRepoError,
)
from app.repositories.exercise import DynamoExerciseRepository, ExerciseRepository
from app.repositories.organization import (
    DynamoOrganizationRepository,
    OrganizationRepository,
)
from app.utils import auth
from app.utils.log import logger
from app.utils.taxonomy import DEFAULT_EQUIPMENT

router = APIRouter(prefix="/api/v1/ai", tags=["ai"])


def get_exercise_repo() -> ExerciseRepository:  # pragma: no cover
    """Fetch the exercise catalog repo"""
    return DynamoExerciseRepository()


def get_cache_repo() -> AlternativesCacheRepository:  # pragma: no cover
    """Fetch the alternatives cache repo"""
    return DynamoAlternativesCacheRepository()


def get_organization_repo() -> OrganizationRepository:  # pragma: no cover
    """Fetch the organisation settings repo"""
    return DynamoOrganizationRepository()


def get_ranker() -> Ranker:  # pragma: no cover
    return OpenAIRanker()


def get_engine(
    exercise_repo: ExerciseRepository = Depends(get_exercise_repo),
    cache_repo: AlternativesCacheRepository = Depends(get_cache_repo),
    ranker: Ranker = Depends(get_ranker),
) -> AlternativesEngine:
    return AlternativesEngine(exercise_repo, AlternativesCache(cache_repo), ranker)


def resolve_available_equipment(config: OrganizationEquipment | None) -> list[str]:
    if config is None:
        return list(DEFAULT_EQUIPMENT)
    return config.resolve()


@router.post("/alternatives", response_model=AlternativesResponse)
def post_alternatives(
    body: AlternativesRequest,
    claims=Depends(auth.require_auth),
    org_repo: OrganizationRepository = Depends(get_organization_repo),
    engine: AlternativesEngine = Depends(get_engine),
):
    """Ranked alternatives for an exercise, using the caller's gym equipment."""
    started = time.monotonic()

    user_sub = claims["sub"]
    organization_id = auth.get_organization_id(claims)
    if not organization_id:
        logger.warning(f"No organisation claim for user {user_sub}")
        raise HTTPException(status_code=404, detail="User profile or organization not found")

    exercise_id = str(body.exercise_id)
    logger.info(
        f"Alternatives requested user={user_sub} org={organization_id} "
        f"exercise={exercise_id} difficulty={body.difficulty_filter} limit={body.limit}"
    )

    try:
        usage = org_repo.get_or_create_ai_usage(organization_id)
    except OrganizationRepoError:
        logger.exception(f"Error loading AI usage for org {organization_id}")
        raise HTTPException(status_code=500, detail="Failed to initialize AI usage tracking")

    if not usage.ai_enabled:
        raise HTTPException(
            status_code=403, detail="AI features are disabled for this organization"
        )

    requests_today = 0
    if usage.max_requests_per_user_daily is not None:
        try:
            requests_today = org_repo.get_user_requests_today(organization_id, user_sub)
        except OrganizationRepoError:
            logger.exception(f"Error loading daily AI usage for user {user_sub}")

        if usage.remaining_user_requests(requests_today) == 0:
            logger.info(f"Daily AI request limit reached for user {user_sub}")
            raise HTTPException(
                status_code=429, detail="Daily AI request limit reached. Try again tomorrow."
            )

    try:
        equipment_config = org_repo.get_equipment(organization_id)
    except OrganizationRepoError:
        logger.exception(f"Error loading equipment for org {organization_id}; using defaults")
        equipment_config = None

    options = AlternativesOptions(
        exercise_id=exercise_id,
        organization_id=organization_id,
        available_equipment=resolve_available_equipment(equipment_config),
        difficulty_filter=body.difficulty_filter,
        limit=body.limit,
        ai_enabled=usage.can_use_ai_ranking,
    )

    try:
        result = engine.get_alternatives(options)
    except ExerciseNotFoundError:
        raise HTTPException(status_code=404, detail="Exercise not found")
    except ExerciseRepoError:
        logger.exception(f"Error fetching exercise {exercise_id}")
        raise HTTPException(status_code=500, detail="Error fetching exercise")

    response_time_ms = int((time.monotonic() - started) * 1000)

    try:
        usage = org_repo.record_ai_usage(
            organization_id,
            user_sub=user_sub,
            exercise_id=exercise_id,
            tokens_used=result.tokens_used,
            was_cached=result.was_cached,
            response_time_ms=response_time_ms,
            alternatives_count=len(result.alternatives),
        )
        remaining_tokens = usage.remaining_tokens
    except OrganizationRepoError:
        logger.exception(f"Error recording AI usage for org {organization_id}")
        remaining_tokens = max(0, usage.remaining_tokens - result.tokens_used)

    return AlternativesResponse(
        alternatives=result.alternatives,
        was_cached=result.was_cached,
        tokens_used=result.tokens_used,
        remaining_tokens=remaining_tokens,
        remaining_requests=usage.remaining_user_requests(requests_today + 1),
    )
