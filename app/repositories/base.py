from typing import Any, Dict, Generic, List, TypeVar

from botocore.exceptions import ClientError

from app.repositories.errors import RepoError
from app.utils.log import logger

T = TypeVar("T")


class DynamoRepository(Generic[T]):
    """
    Base class for DynamoDB repositories with common query/error handling.
    """

    def __init__(self, table=None):
        from app.utils import db

        self._table = table or db.get_table()

    def _to_model(self, item: dict) -> T:
        """This should be overridden in subclasses"""
        raise NotImplementedError

    def _safe_query_all(self, *, max_items: int | None = None, **kwargs) -> List[dict]:
        """
        Follow LastEvaluatedKey until the partition is exhausted or max_items
        have been collected. Filter expressions apply per page, so a page can
        come back short or empty while more remain.
        """
        items: List[dict] = []
        start_key = None

        while True:
            page_kwargs = dict(kwargs)
            if start_key is not None:
                page_kwargs["ExclusiveStartKey"] = start_key

            try:
                response = self._table.query(**page_kwargs)
            except ClientError as e:
                logger.exception("DynamoDB paginated query failed")
                raise RepoError("Failed to query database") from e

            items.extend(response.get("Items", []))
            start_key = response.get("LastEvaluatedKey")

            if max_items is not None and len(items) >= max_items:
                return items[:max_items]
            if not start_key:
                return items

    def _safe_put(self, item: dict, **kwargs) -> None:
        """Safely put item"""
        try:
            self._table.put_item(Item=item, **kwargs)
        except ClientError as e:
            logger.exception("DynamoDB put_item failed")
            raise RepoError("Failed to write to database") from e

    def _safe_update(self, **kwargs) -> Dict[str, Any]:
        try:
            resp = self._table.update_item(**kwargs)
            return resp
        except ClientError as e:
            logger.exception("DynamoDB update_item failed")
            raise RepoError("Failed to update database") from e

    def _safe_get(self, **kwargs) -> dict | None:
        try:
            resp = self._table.get_item(**kwargs)
            return resp.get("Item")
        except ClientError as e:
            logger.exception("DynamoDB get_item failed")
            raise RepoError("Failed to read from database") from e
