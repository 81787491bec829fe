from datetime import timedelta

import pytest

from app.alternatives.cache import (
    AlternativesCache,
    build_cache_key,
    calculate_equipment_hash,
)
from app.models.exercise import ExerciseAlternative
from app.utils import dates
from tests.test_data import AIR_SQUAT_ID, GOBLET_ID, SQUAT_ID


@pytest.fixture
def alternatives(exercise_factory) -> list[ExerciseAlternative]:
    return [
        ExerciseAlternative(
            exercise=exercise_factory(GOBLET_ID, name="Goblet Squat").to_alternative_data(),
            reason="mismo patron de sentadilla",
            score=90,
        ),
        ExerciseAlternative(
            exercise=exercise_factory(AIR_SQUAT_ID, name="Air Squat").to_alternative_data(),
            reason="sin equipo necesario",
            score=75,
        ),
    ]


# --------------- hashing and keys ---------------


def test_equipment_hash_is_order_independent():
    assert calculate_equipment_hash(["a", "b"]) == calculate_equipment_hash(["b", "a"])
    assert calculate_equipment_hash(
        ["dumbbell", "barbell", "bodyweight"]
    ) == calculate_equipment_hash(["bodyweight", "barbell", "dumbbell"])


def test_equipment_hash_is_16_hex_chars():
    value = calculate_equipment_hash(["barbell"])

    assert len(value) == 16
    int(value, 16)


def test_equipment_hash_differs_for_different_sets():
    assert calculate_equipment_hash(["barbell"]) != calculate_equipment_hash(["dumbbell"])


def test_equipment_hash_of_empty_set_is_stable():
    # md5("") truncated
    assert calculate_equipment_hash([]) == "d41d8cd98f00b204"


def test_build_cache_key_normalises_empty_difficulty():
    key = build_cache_key(SQUAT_ID, ["barbell"], "")

    assert key.difficulty_filter is None
    assert key == build_cache_key(SQUAT_ID, ["barbell"], None)


# --------------- check / save ---------------


def test_round_trip_before_expiry(cache, cache_repo, alternatives, fixed_now):
    key = build_cache_key(SQUAT_ID, ["barbell", "dumbbell"], None)

    cache.save(key, alternatives)

    assert cache.check(key) == alternatives
    entry = cache_repo.entries[key]
    assert entry.hit_count == 0
    assert entry.created_at == fixed_now
    assert entry.expires_at == fixed_now + timedelta(days=7)


def test_lookup_with_reordered_equipment_hits(cache, alternatives, fixed_now):
    cache.save(build_cache_key(SQUAT_ID, ["barbell", "dumbbell"], None), alternatives)

    assert cache.check(build_cache_key(SQUAT_ID, ["dumbbell", "barbell"], None)) == (
        alternatives
    )


def test_difficulty_is_part_of_the_key(cache, alternatives, fixed_now):
    cache.save(build_cache_key(SQUAT_ID, ["barbell"], "beginner"), alternatives)

    assert cache.check(build_cache_key(SQUAT_ID, ["barbell"], None)) is None
    assert cache.check(build_cache_key(SQUAT_ID, ["barbell"], "beginner")) is not None


def test_expired_entry_is_a_miss(cache, alternatives, fixed_now, monkeypatch):
    key = build_cache_key(SQUAT_ID, ["barbell"], None)
    cache.save(key, alternatives)

    later = fixed_now + timedelta(days=7, seconds=1)
    monkeypatch.setattr(dates, "now", lambda: later)

    assert cache.check(key) is None


def test_save_overwrites_previous_entry(cache, cache_repo, alternatives, fixed_now):
    key = build_cache_key(SQUAT_ID, ["barbell"], None)
    cache.save(key, alternatives)
    cache.check(key)

    cache.save(key, alternatives[:1])

    assert cache.check(key) == alternatives[:1]
    assert len(cache_repo.entries) == 1


def test_missing_entry_is_a_miss(cache):
    assert cache.check(build_cache_key(SQUAT_ID, ["barbell"], None)) is None


def test_read_error_is_treated_as_miss(cache, cache_repo):
    cache_repo.raise_on_get = True

    assert cache.check(build_cache_key(SQUAT_ID, ["barbell"], None)) is None


def test_write_error_is_swallowed(cache, cache_repo, alternatives, fixed_now):
    cache_repo.raise_on_put = True

    cache.save(build_cache_key(SQUAT_ID, ["barbell"], None), alternatives)

    assert cache_repo.entries == {}


def test_ttl_defaults_to_settings(
    cache_repo, executor, alternatives, fixed_now, monkeypatch
):
    from app.settings import settings

    monkeypatch.setattr(settings, "ALTERNATIVES_CACHE_TTL_DAYS", 3)
    cache = AlternativesCache(cache_repo, executor=executor)
    key = build_cache_key(SQUAT_ID, ["barbell"], None)

    cache.save(key, alternatives)

    assert cache_repo.entries[key].expires_at == fixed_now + timedelta(days=3)


def test_zero_ttl_expires_immediately(cache_repo, executor, alternatives, fixed_now):
    cache = AlternativesCache(cache_repo, executor=executor, ttl_days=0)
    key = build_cache_key(SQUAT_ID, ["barbell"], None)

    cache.save(key, alternatives)

    assert cache_repo.entries[key].expires_at == fixed_now
    assert cache.check(key) is None


# --------------- hit counter ---------------


def test_hit_records_counter_in_background(cache, cache_repo, alternatives, fixed_now):
    key = build_cache_key(SQUAT_ID, ["barbell"], None)
    cache.save(key, alternatives)

    cache.check(key)
    cache.check(key)

    assert cache_repo.hits == [key, key]


def test_miss_does_not_record_hit(cache, cache_repo):
    cache.check(build_cache_key(SQUAT_ID, ["barbell"], None))

    assert cache_repo.hits == []


def test_hit_counter_failure_does_not_affect_read(
    cache, cache_repo, alternatives, fixed_now
):
    key = build_cache_key(SQUAT_ID, ["barbell"], None)
    cache.save(key, alternatives)
    cache_repo.raise_on_hit = True

    assert cache.check(key) == alternatives


def test_record_hit_returns_future_with_failure(cache, cache_repo, fixed_now):
    cache_repo.raise_on_hit = True

    future = cache.record_hit(build_cache_key(SQUAT_ID, ["barbell"], None))

    assert future.done()
    assert future.exception() is not None
