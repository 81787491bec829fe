import hashlib
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Iterable

from app.models.alternatives import CacheEntry, CacheKey
from app.models.exercise import ExerciseAlternative
from app.repositories.cache import AlternativesCacheRepository
from app.repositories.errors import RepoError
from app.settings import settings
from app.utils import dates, db
from app.utils.log import logger

# Hit counters are advisory; they are written off the request path.
_hit_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="cache-hit")


def calculate_equipment_hash(equipment: Iterable[str]) -> str:
    """
    Order-independent hash of an equipment list: sorted, comma-joined,
    md5, first 16 hex chars.
    """
    joined = ",".join(sorted(equipment))
    return hashlib.md5(joined.encode("utf-8")).hexdigest()[:16]


def build_cache_key(
    exercise_id: str, available_equipment: Iterable[str], difficulty_filter: str | None
) -> CacheKey:
    return CacheKey(
        exercise_id=exercise_id,
        equipment_hash=calculate_equipment_hash(available_equipment),
        difficulty_filter=difficulty_filter or None,
    )


def _log_hit_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.warning(f"Cache hit counter update failed: {exc}")


class AlternativesCache:
    """
    Cache-aside store for ranked alternatives.

    Reads and writes never raise: a failed read is a miss and a failed write
    is skipped. Expired entries are treated as absent and left for the
    table's TTL to reap.
    """

    def __init__(
        self,
        repo: AlternativesCacheRepository,
        *,
        executor: Executor | None = None,
        ttl_days: int | None = None,
    ):
        self._repo = repo
        self._executor = executor or _hit_executor
        self._ttl_days = (
            settings.ALTERNATIVES_CACHE_TTL_DAYS if ttl_days is None else ttl_days
        )

    def check(self, key: CacheKey) -> list[ExerciseAlternative] | None:
        try:
            entry = self._repo.get(key)
        except RepoError as e:
            logger.warning(f"Cache read failed for {key}; treating as miss: {e}")
            return None

        if entry is None:
            logger.debug(f"Cache miss for {key}")
            return None

        if entry.is_expired(dates.now()):
            logger.debug(f"Cache entry for {key} expired at {entry.expires_at}")
            return None

        self.record_hit(key)
        logger.info(
            f"Cache hit for exercise {key.exercise_id} "
            f"({len(entry.alternatives)} alternatives)"
        )
        return entry.alternatives

    def save(self, key: CacheKey, alternatives: list[ExerciseAlternative]) -> None:
        ts = dates.now()
        entry = CacheEntry(
            PK=db.build_cache_pk(key.exercise_id),
            SK=db.build_cache_sk(key.equipment_hash, key.difficulty_filter),
            exercise_id=key.exercise_id,
            equipment_hash=key.equipment_hash,
            difficulty_filter=key.difficulty_filter,
            alternatives=alternatives,
            created_at=ts,
            expires_at=dates.days_from_now(self._ttl_days),
            hit_count=0,
        )

        try:
            self._repo.put(entry)
        except RepoError as e:
            logger.warning(f"Cache write failed for {key}; skipping: {e}")
            return

        logger.debug(f"Cached {len(alternatives)} alternatives for {key}")

    def record_hit(self, key: CacheKey) -> Future:
        """Schedule the hit counter update and return without waiting."""
        future = self._executor.submit(self._repo.record_hit, key, dates.now())
        future.add_done_callback(_log_hit_failure)
        return future
