from datetime import datetime, timezone

import pytest

from app.models.alternatives import CacheEntry
from app.models.exercise import Exercise, ExerciseAlternative
from app.models.organization import OrganizationAiUsage

# ───────────── Exercise  ─────────────


@pytest.fixture
def exercise():
    """Factory fixture for Exercise instances."""

    def _make(**overrides):
        defaults = {
            "PK": "CATALOG#GLOBAL",
            "SK": "EXERCISE#PUSHUP",
            "type": "exercise",
            "name": "Push-up",
            "name_es": "Flexiones",
            "category": "strength",
            "movement_pattern": "horizontal_push",
            "muscle_groups": ["chest", "triceps"],
            "equipment": ["bodyweight"],
            "difficulty": "beginner",
            "created_at": datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
            "updated_at": datetime(2025, 1, 2, 12, 0, 0, tzinfo=timezone.utc),
        }
        return Exercise(**{**defaults, **overrides})

    return _make


@pytest.fixture
def example_exercise(exercise):
    return exercise()


# ───────────── Cache entry  ─────────────


@pytest.fixture
def cache_entry(example_exercise):
    """Factory fixture for CacheEntry instances."""

    def _make(**overrides):
        defaults = {
            "PK": "ALTCACHE#BENCH",
            "SK": "EQUIP#0123456789abcdef#DIFF#ANY",
            "exercise_id": "BENCH",
            "equipment_hash": "0123456789abcdef",
            "alternatives": [
                ExerciseAlternative(
                    exercise=example_exercise.to_alternative_data(),
                    reason="mismo patron de empuje horizontal",
                    score=82,
                )
            ],
            "created_at": datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
            "expires_at": datetime(2025, 1, 8, 12, 0, 0, tzinfo=timezone.utc),
        }
        return CacheEntry(**{**defaults, **overrides})

    return _make


# ───────────── AI usage  ─────────────


@pytest.fixture
def ai_usage():
    """Factory fixture for OrganizationAiUsage instances."""

    def _make(**overrides):
        defaults = {
            "PK": "ORG#org-456",
            "organization_id": "org-456",
            "monthly_token_limit": 500,
            "tokens_used_this_period": 100,
            "created_at": datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
            "updated_at": datetime(2025, 1, 1, 13, 0, 0, tzinfo=timezone.utc),
        }
        return OrganizationAiUsage(**{**defaults, **overrides})

    return _make
