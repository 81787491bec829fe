from typing import List, Protocol

from app.alternatives.cache import AlternativesCache, build_cache_key
from app.alternatives.candidates import find_candidates
from app.alternatives.scoring import score_candidates
from app.models.alternatives import (
    AlternativesOptions,
    AlternativesResult,
    CandidateFilters,
    RankingFailed,
    RankingOutcome,
    ScoredCandidate,
)
from app.models.exercise import Exercise
from app.repositories.errors import ExerciseNotFoundError
from app.repositories.exercise import ExerciseRepository
from app.settings import settings
from app.utils.log import logger


class Ranker(Protocol):
    def rank(
        self,
        source: Exercise,
        candidates: list[Exercise],
        available_equipment: list[str],
        *,
        model: str | None = None,
    ) -> RankingOutcome: ...


def merge_rankings(
    source: Exercise,
    candidates: list[Exercise],
    available_equipment: list[str],
    outcome: RankingOutcome,
    locale: str | None = None,
) -> tuple[list[ScoredCandidate], int]:
    """
    Combine a ranker outcome with deterministic scores.

    RankingFailed discards everything from the ranker and scores every
    candidate deterministically. RankingOk uses the ranker's score and reason
    where it covered a candidate and the deterministic values elsewhere.
    Returns the scored candidates and the tokens to account for.
    """
    if isinstance(outcome, RankingFailed):
        logger.warning(f"AI ranking unavailable, using rule-based scores: {outcome.reason}")
        return score_candidates(source, candidates, available_equipment, locale), 0

    by_id = {r.id: r for r in outcome.rankings}
    fallback = {
        sc.exercise.exercise_id: sc
        for sc in score_candidates(
            source,
            [c for c in candidates if c.exercise_id not in by_id],
            available_equipment,
            locale,
        )
    }

    scored: list[ScoredCandidate] = []
    for candidate in candidates:
        ranking = by_id.get(candidate.exercise_id)
        if ranking is None:
            scored.append(fallback[candidate.exercise_id])
        else:
            scored.append(
                ScoredCandidate(
                    exercise=candidate, score=int(ranking.score), reason=ranking.reason
                )
            )

    return scored, outcome.tokens_used


class AlternativesEngine:
    """
    Cache-aside pipeline for exercise alternatives:
    cache -> source -> candidates -> score/rank -> cache write -> truncate.
    """

    def __init__(
        self,
        exercise_repo: ExerciseRepository,
        cache: AlternativesCache,
        ranker: Ranker | None = None,
        *,
        candidate_limit: int | None = None,
        cache_size: int | None = None,
        locale: str | None = None,
    ):
        self._exercise_repo = exercise_repo
        self._cache = cache
        self._ranker = ranker
        self._candidate_limit = (
            settings.ALTERNATIVES_CANDIDATE_LIMIT if candidate_limit is None else candidate_limit
        )
        self._cache_size = (
            settings.ALTERNATIVES_CACHE_SIZE if cache_size is None else cache_size
        )
        self._locale = locale

    def _rank(
        self, source: Exercise, candidates: list[Exercise], options: AlternativesOptions
    ) -> RankingOutcome:
        try:
            return self._ranker.rank(  # type: ignore[union-attr]
                source, candidates, options.available_equipment, model=options.model
            )
        except Exception as e:
            logger.exception(f"Ranker raised for exercise {options.exercise_id}")
            return RankingFailed(reason=f"{type(e).__name__}: {e}")

    def find_candidates(self, filters: CandidateFilters) -> List[Exercise]:
        return find_candidates(
            self._exercise_repo, filters, limit=self._candidate_limit
        )

    def get_alternatives(self, options: AlternativesOptions) -> AlternativesResult:
        key = build_cache_key(
            options.exercise_id, options.available_equipment, options.difficulty_filter
        )

        cached = self._cache.check(key)
        if cached is not None:
            return AlternativesResult(
                alternatives=cached[: options.limit], was_cached=True, tokens_used=0
            )

        source = self._exercise_repo.get_exercise_by_id(
            options.exercise_id, options.organization_id
        )
        if source is None:
            raise ExerciseNotFoundError(f"Exercise {options.exercise_id} not found")

        candidates = self.find_candidates(
            CandidateFilters(
                source_exercise=source,
                organization_id=options.organization_id,
                available_equipment=options.available_equipment,
                difficulty_filter=options.difficulty_filter,
            )
        )

        if not candidates:
            logger.info(f"No candidates for exercise {options.exercise_id}")
            return AlternativesResult(alternatives=[], was_cached=False, tokens_used=0)

        if options.ai_enabled and self._ranker is not None:
            outcome = self._rank(source, candidates, options)
            scored, tokens_used = merge_rankings(
                source, candidates, options.available_equipment, outcome, self._locale
            )
        else:
            scored = score_candidates(
                source, candidates, options.available_equipment, self._locale
            )
            tokens_used = 0

        scored.sort(key=lambda sc: sc.score, reverse=True)

        # Cache more than was asked for so smaller follow-up requests hit
        self._cache.save(key, [sc.to_alternative() for sc in scored[: self._cache_size]])

        return AlternativesResult(
            alternatives=[sc.to_alternative() for sc in scored[: options.limit]],
            was_cached=False,
            tokens_used=tokens_used,
        )
