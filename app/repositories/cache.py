from datetime import datetime
from typing import Protocol

from app.models.alternatives import CacheEntry, CacheKey
from app.repositories.base import DynamoRepository
from app.repositories.errors import CacheRepoError, RepoError
from app.utils import db
from app.utils.dates import dt_to_iso
from app.utils.log import logger


class AlternativesCacheRepository(Protocol):
    def get(self, key: CacheKey) -> CacheEntry | None: ...
    def put(self, entry: CacheEntry) -> None: ...
    def record_hit(self, key: CacheKey, at: datetime) -> None: ...


def build_cache_keys(key: CacheKey) -> dict:
    return {
        "PK": db.build_cache_pk(key.exercise_id),
        "SK": db.build_cache_sk(key.equipment_hash, key.difficulty_filter),
    }


class DynamoAlternativesCacheRepository(DynamoRepository[CacheEntry]):
    """
    Cache rows for ranked alternatives, one per
    (exercise id, equipment hash, difficulty filter).
    """

    def _to_model(self, item: dict) -> CacheEntry:
        try:
            return CacheEntry.model_validate(item)
        except Exception as e:
            logger.error(f"_to_model failed for cache entry: {e}")
            raise CacheRepoError("Failed to create cache entry from item") from e

    def get(self, key: CacheKey) -> CacheEntry | None:
        try:
            item = self._safe_get(Key=build_cache_keys(key))
        except RepoError as e:
            raise CacheRepoError("Failed to read cache entry") from e

        if not item:
            return None

        return self._to_model(item)

    def put(self, entry: CacheEntry) -> None:
        """Upsert: a put on the same PK/SK replaces the previous entry."""
        try:
            self._safe_put(entry.to_ddb_item())
        except RepoError as e:
            raise CacheRepoError("Failed to write cache entry") from e

    def record_hit(self, key: CacheKey, at: datetime) -> None:
        try:
            self._safe_update(
                Key=build_cache_keys(key),
                UpdateExpression="ADD hit_count :one SET last_hit_at = :at",
                ExpressionAttributeValues={":one": 1, ":at": dt_to_iso(at)},
                ConditionExpression="attribute_exists(PK)",
            )
        except RepoError as e:
            raise CacheRepoError("Failed to record cache hit") from e
