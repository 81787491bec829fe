from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.exercise import Exercise, ExerciseAlternative
from app.utils.dates import dt_to_iso, now, to_epoch

Difficulty = Literal["beginner", "intermediate", "advanced"]

# ─────────────────────────────────────────
# Engine value objects
# ─────────────────────────────────────────


@dataclass(frozen=True)
class CandidateFilters:
    source_exercise: Exercise
    organization_id: str
    available_equipment: list[str]
    difficulty_filter: Optional[str] = None


@dataclass
class ScoredCandidate:
    exercise: Exercise
    score: int
    reason: str

    def to_alternative(self) -> ExerciseAlternative:
        return ExerciseAlternative(
            exercise=self.exercise.to_alternative_data(),
            reason=self.reason,
            score=self.score,
        )


@dataclass(frozen=True)
class AlternativesOptions:
    exercise_id: str
    organization_id: str
    available_equipment: list[str]
    limit: int
    ai_enabled: bool
    difficulty_filter: Optional[str] = None
    model: Optional[str] = None


@dataclass
class AlternativesResult:
    alternatives: list[ExerciseAlternative]
    was_cached: bool
    tokens_used: int = 0


# ─────────────────────────────────────────
# Cache
# ─────────────────────────────────────────


@dataclass(frozen=True)
class CacheKey:
    exercise_id: str
    equipment_hash: str
    difficulty_filter: Optional[str] = None


class CacheEntry(BaseModel):
    PK: str  # "ALTCACHE#<exercise_id>"
    SK: str  # "EQUIP#<hash>#DIFF#<difficulty|ANY>"
    type: Literal["alternatives_cache"] = "alternatives_cache"

    exercise_id: str
    equipment_hash: str
    difficulty_filter: Optional[str] = None

    alternatives: list[ExerciseAlternative]

    created_at: datetime
    expires_at: datetime
    hit_count: int = 0
    last_hit_at: Optional[datetime] = None

    def is_expired(self, at: datetime | None = None) -> bool:
        return self.expires_at <= (at or now())

    def to_ddb_item(self) -> dict:
        data = self.model_dump(mode="json")
        data["created_at"] = dt_to_iso(self.created_at)
        data["expires_at"] = dt_to_iso(self.expires_at)
        data["last_hit_at"] = dt_to_iso(self.last_hit_at) if self.last_hit_at else None
        # Native DynamoDB TTL attribute, seconds since epoch
        data["ttl"] = to_epoch(self.expires_at)
        return data


# ─────────────────────────────────────────
# External ranker
# ─────────────────────────────────────────


class AIRanking(BaseModel):
    id: str
    score: float
    reason: str


@dataclass(frozen=True)
class RankingOk:
    rankings: list[AIRanking]
    tokens_used: int = 0
    ok: Literal[True] = field(default=True, init=False)


@dataclass(frozen=True)
class RankingFailed:
    reason: str
    ok: Literal[False] = field(default=False, init=False)


RankingOutcome = Union[RankingOk, RankingFailed]


# ─────────────────────────────────────────
# API
# ─────────────────────────────────────────


class AlternativesRequest(BaseModel):
    exercise_id: UUID
    difficulty_filter: Optional[Difficulty] = None
    limit: int = Field(default=5, ge=1, le=20)


class AlternativesResponse(BaseModel):
    alternatives: list[ExerciseAlternative]
    was_cached: bool
    tokens_used: int
    remaining_tokens: int
    # Caller's requests left today; None when the organisation sets no cap
    remaining_requests: int | None = None
