import time

import boto3
from botocore.exceptions import ClientError

from app.settings import settings
from app.utils.log import logger

REGION_NAME = settings.REGION
TABLE_NAME = settings.DDB_TABLE_NAME

GLOBAL_CATALOG_PK = "CATALOG#GLOBAL"
ANY_DIFFICULTY = "ANY"


def get_dynamo_resource():
    return boto3.resource("dynamodb", region_name=REGION_NAME)


def get_table():
    resource = get_dynamo_resource()
    return resource.Table(TABLE_NAME)  # type: ignore


# ─────────────────────────────────────────────────────────────
# Exercise catalog
# ─────────────────────────────────────────────────────────────


def build_org_pk(organization_id: str) -> str:
    """
    Partition key for all organisation-owned items.
    Example: ORG#abc-123
    """
    return f"ORG#{organization_id}"


def build_catalog_pk(organization_id: str | None) -> str:
    """
    Partition holding an exercise: the global catalog when organization_id
    is None, otherwise the organisation's own partition.
    """
    if organization_id is None:
        return GLOBAL_CATALOG_PK
    return build_org_pk(organization_id)


def build_exercise_sk(exercise_id: str) -> str:
    """
    Sort key for an exercise item.
    Example: EXERCISE#E1
    """
    return f"EXERCISE#{exercise_id}"


# ─────────────────────────────────────────────────────────────
# Alternatives cache
# ─────────────────────────────────────────────────────────────


def build_cache_pk(exercise_id: str) -> str:
    """
    Example: ALTCACHE#E1
    """
    return f"ALTCACHE#{exercise_id}"


def build_cache_sk(equipment_hash: str, difficulty_filter: str | None) -> str:
    """
    Example: EQUIP#9f86d081884c7d65#DIFF#ANY
    """
    difficulty = difficulty_filter or ANY_DIFFICULTY
    return f"EQUIP#{equipment_hash}#DIFF#{difficulty}"


# ─────────────────────────────────────────────────────────────
# Organisation settings
# ─────────────────────────────────────────────────────────────

AI_USAGE_SK = "AI_USAGE"
EQUIPMENT_SK = "EQUIPMENT"


def build_usage_log_sk(created_at_iso: str, log_id: str) -> str:
    """
    Example: AI_LOG#2025-11-04T10:00:00Z#L1
    """
    return f"AI_LOG#{created_at_iso}#{log_id}"


def build_user_daily_usage_sk(user_sub: str, day_iso: str) -> str:
    """
    Per-user request counter for one UTC day.
    Example: AI_USER#abc-123#2025-11-04
    """
    return f"AI_USER#{user_sub}#{day_iso}"


# ─────────────────────────────────────────────────────────────
# Rate limiting
# ─────────────────────────────────────────────────────────────


def build_rate_limit_pk(client_id: str) -> str:
    return f"RATE#{client_id}"


def build_rate_limit_sk(window_id: int) -> str:
    return f"WIN#{window_id}"


class RateLimitDdbError(Exception):
    pass


def rate_limit_hit(
    *, client_id: str, limit: int, ttl_seconds: int = 600
) -> tuple[bool, int]:
    """
    Increment rate-limit counter for the current minute window.

    Returns: (allowed, retry_after_seconds)
    - allowed: True if within limit, False if exceeded
    - retry_after_seconds: seconds until next window (only meaningful when allowed=False)

    Notes:
    - Fixed window: 60 seconds
    - Uses DynamoDB UpdateItem ADD for atomic increment
    - Sets expires_at for TTL cleanup
    """
    now = int(time.time())
    window_id = now // 60

    pk = build_rate_limit_pk(client_id)
    sk = build_rate_limit_sk(window_id)

    expires_at = now + ttl_seconds
    retry_after = 60 - (now % 60)

    table = get_table()

    try:
        resp = table.update_item(
            Key={"PK": pk, "SK": sk},
            UpdateExpression="ADD #count :inc SET #expires_at = :expires_at",
            ExpressionAttributeNames={
                "#count": "count",
                "#expires_at": "expires_at",
            },
            ExpressionAttributeValues={
                ":inc": 1,
                ":expires_at": expires_at,
            },
            ReturnValues="UPDATED_NEW",
        )
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code")
        logger.warning(
            f"Rate limit storage error; failing open.\nClient bucket: {client_id[:64]}\nError: {code}",
        )
        raise RateLimitDdbError(str(e)) from e

    count = int(resp["Attributes"]["count"])
    if count > limit:
        logger.info(
            f"Rate limit exceeded.\nClient bucket: {client_id[:64]}\nCount: {count}\nLimit: {limit}\nWindow id: {window_id}\nRetry after: {retry_after}",
        )
        return (False, retry_after)

    return (True, retry_after)
