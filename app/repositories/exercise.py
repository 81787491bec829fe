from typing import List, Protocol

from boto3.dynamodb.conditions import Attr, Key

from app.models.exercise import Exercise
from app.repositories.base import DynamoRepository
from app.repositories.errors import ExerciseRepoError, RepoError
from app.utils import db
from app.utils.log import logger


class ExerciseRepository(Protocol):
    def get_exercise_by_id(
        self, exercise_id: str, organization_id: str | None = None
    ) -> Exercise | None: ...
    def find_alternative_candidates(
        self,
        *,
        organization_id: str,
        exclude_id: str,
        movement_pattern: str | None,
        difficulty: str | None,
        limit: int,
    ) -> List[Exercise]: ...


class DynamoExerciseRepository(DynamoRepository[Exercise]):
    """
    Exercise catalog backed by DynamoDB. Global exercises live under
    CATALOG#GLOBAL, organisation exercises under ORG#<id>, both keyed
    EXERCISE#<id>.
    """

    def _to_model(self, item: dict) -> Exercise:
        """
        Map a DynamoDB item (from the resource API) into an Exercise model.
        """
        try:
            return Exercise.model_validate(item)
        except Exception as e:
            logger.error(f"_to_model failed for exercise SK={item.get('SK')}: {e}")
            raise ExerciseRepoError("Failed to create exercise model from item") from e

    def get_exercise_by_id(
        self, exercise_id: str, organization_id: str | None = None
    ) -> Exercise | None:
        """
        Return a single exercise by id, looking in the organisation's partition
        first (when given) and then in the global catalog.
        """
        sk = db.build_exercise_sk(exercise_id)

        partitions = [db.build_catalog_pk(None)]
        if organization_id:
            partitions.insert(0, db.build_catalog_pk(organization_id))

        for pk in partitions:
            try:
                item = self._safe_get(Key={"PK": pk, "SK": sk})
            except RepoError as e:
                raise ExerciseRepoError("Failed to get exercise by id") from e

            if item:
                return self._to_model(item)

        logger.debug(f"Exercise {exercise_id} not found in {partitions}")
        return None

    def find_alternative_candidates(
        self,
        *,
        organization_id: str,
        exclude_id: str,
        movement_pattern: str | None,
        difficulty: str | None,
        limit: int,
    ) -> List[Exercise]:
        """
        Active exercises visible to the organisation (global catalog plus its
        own), optionally narrowed to a movement pattern and difficulty, without
        the excluded exercise, capped at limit. Order is whatever the table
        returns.
        """
        filter_expr = Attr("is_active").eq(True)
        if movement_pattern:
            filter_expr = filter_expr & Attr("movement_pattern").eq(movement_pattern)
        if difficulty:
            filter_expr = filter_expr & Attr("difficulty").eq(difficulty)

        exclude_sk = db.build_exercise_sk(exclude_id)
        partitions = [db.build_catalog_pk(None), db.build_catalog_pk(organization_id)]

        results: List[Exercise] = []
        for pk in partitions:
            remaining = limit - len(results)
            if remaining <= 0:
                break

            try:
                items = self._safe_query_all(
                    # one extra in case the source exercise is in this partition
                    max_items=remaining + 1,
                    KeyConditionExpression=Key("PK").eq(pk)
                    & Key("SK").begins_with("EXERCISE#"),
                    FilterExpression=filter_expr,
                )
            except RepoError as e:
                raise ExerciseRepoError("Failed to query alternative candidates") from e

            for item in items:
                if item.get("SK") == exclude_sk:
                    continue
                try:
                    results.append(self._to_model(item))
                except ExerciseRepoError:
                    logger.warning(f"Skipping invalid catalog item {pk}/{item.get('SK')}")

        logger.debug(
            f"Candidate query org={organization_id} pattern={movement_pattern} "
            f"difficulty={difficulty} returned {len(results)} items"
        )
        return results[:limit]
