import uuid
from datetime import date, timedelta
from typing import Protocol

from botocore.exceptions import ClientError

from app.models.organization import (
    OrganizationAiUsage,
    OrganizationEquipment,
    UsageLogEntry,
)
from app.repositories.base import DynamoRepository
from app.repositories.errors import OrganizationRepoError, RepoError
from app.settings import settings
from app.utils import db
from app.utils import dates
from app.utils.dates import dt_to_iso
from app.utils.log import logger

# Daily counters are only read for the current day
USER_DAILY_TTL = timedelta(days=2)


class OrganizationRepository(Protocol):
    def get_or_create_ai_usage(self, organization_id: str) -> OrganizationAiUsage: ...
    def get_equipment(self, organization_id: str) -> OrganizationEquipment | None: ...
    def get_user_requests_today(self, organization_id: str, user_sub: str) -> int: ...
    def record_ai_usage(
        self,
        organization_id: str,
        *,
        user_sub: str | None,
        exercise_id: str | None,
        tokens_used: int,
        was_cached: bool,
        response_time_ms: int,
        alternatives_count: int,
    ) -> OrganizationAiUsage: ...


class DynamoOrganizationRepository(DynamoRepository[OrganizationAiUsage]):
    """
    Per-organisation AI settings: usage counters, per-user daily counters,
    equipment configuration and the usage log, all under ORG#<id>.
    """

    def _to_model(self, item: dict) -> OrganizationAiUsage:
        try:
            return OrganizationAiUsage.model_validate(item)
        except Exception as e:
            logger.error(f"_to_model failed for ai usage: {e}")
            raise OrganizationRepoError("Failed to create AI usage model from item") from e

    def _fetch_ai_usage_item(self, organization_id: str) -> dict | None:
        try:
            return self._safe_get(
                Key={"PK": db.build_org_pk(organization_id), "SK": db.AI_USAGE_SK}
            )
        except RepoError as e:
            logger.error(f"Repo error fetching AI usage for org {organization_id}: {e}")
            raise OrganizationRepoError("Failed to fetch AI usage") from e

    def get_or_create_ai_usage(self, organization_id: str) -> OrganizationAiUsage:
        """
        Current usage for the organisation. A missing record is created with
        the defaults, and a record whose period has ended is rolled into the
        current month with its counters zeroed.
        """
        item = self._fetch_ai_usage_item(organization_id)
        today = dates.now().date()

        if item:
            usage = self._to_model(item)
            if usage.period_has_ended(today):
                return self._start_new_period(usage, today)
            return usage

        logger.info(f"Creating default AI usage record for org {organization_id}")
        ts = dates.now()
        period_start, period_end = dates.month_period(today)
        usage = OrganizationAiUsage(
            PK=db.build_org_pk(organization_id),
            organization_id=organization_id,
            monthly_token_limit=settings.DEFAULT_AI_TOKEN_LIMIT,
            max_requests_per_user_daily=settings.DEFAULT_AI_USER_DAILY_REQUESTS,
            period_start_date=period_start,
            period_end_date=period_end,
            created_at=ts,
            updated_at=ts,
        )

        try:
            self._safe_put(usage.to_ddb_item())
        except RepoError as e:
            raise OrganizationRepoError("Failed to initialise AI usage") from e

        return usage

    def _start_new_period(
        self, usage: OrganizationAiUsage, today: date
    ) -> OrganizationAiUsage:
        period_start, period_end = dates.month_period(today)
        logger.info(
            f"AI usage period for org {usage.organization_id} ended "
            f"{usage.period_end_date}; starting {period_start}"
        )

        try:
            resp = self._table.update_item(
                Key={"PK": usage.PK, "SK": db.AI_USAGE_SK},
                UpdateExpression=(
                    "SET tokens_used_this_period = :zero, requests_this_period = :zero, "
                    "period_start_date = :start, period_end_date = :end, updated_at = :ua"
                ),
                ConditionExpression=(
                    "attribute_not_exists(period_end_date) OR period_end_date <= :today"
                ),
                ExpressionAttributeValues={
                    ":zero": 0,
                    ":start": period_start.isoformat(),
                    ":end": period_end.isoformat(),
                    ":today": today.isoformat(),
                    ":ua": dt_to_iso(dates.now()),
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")

            if code == "ConditionalCheckFailedException":
                # Another request already rolled the period over
                logger.info(f"AI usage period for org {usage.organization_id} already reset")
                item = self._fetch_ai_usage_item(usage.organization_id)
                if not item:
                    raise OrganizationRepoError("AI usage disappeared during period reset")
                return self._to_model(item)

            logger.exception(f"AI usage period reset failed for org {usage.organization_id}")
            raise OrganizationRepoError("Failed to reset AI usage period") from e

        attrs = resp.get("Attributes")
        if not attrs:
            raise OrganizationRepoError("AI usage period reset returned no attributes")
        return self._to_model(attrs)

    def get_equipment(self, organization_id: str) -> OrganizationEquipment | None:
        pk = db.build_org_pk(organization_id)

        try:
            item = self._safe_get(Key={"PK": pk, "SK": db.EQUIPMENT_SK})
        except RepoError as e:
            raise OrganizationRepoError("Failed to fetch equipment config") from e

        if not item:
            return None

        try:
            return OrganizationEquipment.model_validate(item)
        except Exception as e:
            logger.error(f"Invalid equipment config for org {organization_id}: {e}")
            raise OrganizationRepoError("Failed to parse equipment config") from e

    def _user_daily_key(self, organization_id: str, user_sub: str, day: date) -> dict:
        return {
            "PK": db.build_org_pk(organization_id),
            "SK": db.build_user_daily_usage_sk(user_sub, day.isoformat()),
        }

    def get_user_requests_today(self, organization_id: str, user_sub: str) -> int:
        key = self._user_daily_key(organization_id, user_sub, dates.now().date())

        try:
            item = self._safe_get(Key=key)
        except RepoError as e:
            raise OrganizationRepoError("Failed to fetch user AI usage") from e

        if not item:
            return 0
        return int(item.get("requests_today", 0))

    def record_ai_usage(
        self,
        organization_id: str,
        *,
        user_sub: str | None,
        exercise_id: str | None,
        tokens_used: int,
        was_cached: bool,
        response_time_ms: int,
        alternatives_count: int,
    ) -> OrganizationAiUsage:
        """
        Add tokens and one request to the period counters and the caller's
        daily counter, then append a usage log item.
        """
        pk = db.build_org_pk(organization_id)
        ts = dates.now()

        try:
            resp = self._safe_update(
                Key={"PK": pk, "SK": db.AI_USAGE_SK},
                UpdateExpression=(
                    "ADD tokens_used_this_period :tokens, requests_this_period :one "
                    "SET updated_at = :ua"
                ),
                ExpressionAttributeValues={
                    ":tokens": tokens_used,
                    ":one": 1,
                    ":ua": dt_to_iso(ts),
                },
                ConditionExpression="attribute_exists(PK) AND attribute_exists(SK)",
                ReturnValues="ALL_NEW",
            )
        except RepoError as e:
            logger.error(f"Repo error recording AI usage for org {organization_id}: {e}")
            raise OrganizationRepoError("Failed to record AI usage") from e

        attrs = resp.get("Attributes")
        if not attrs:
            raise OrganizationRepoError("AI usage update returned no attributes")

        if user_sub:
            self._increment_user_daily(organization_id, user_sub, tokens_used)

        created_iso = dt_to_iso(ts)
        log_entry = UsageLogEntry(
            PK=pk,
            SK=db.build_usage_log_sk(created_iso, str(uuid.uuid4())),
            organization_id=organization_id,
            user_sub=user_sub,
            exercise_id=exercise_id,
            tokens_used=tokens_used,
            was_cached=was_cached,
            response_time_ms=response_time_ms,
            alternatives_count=alternatives_count,
            created_at=ts,
        )

        try:
            self._safe_put(log_entry.to_ddb_item())
        except RepoError as e:
            raise OrganizationRepoError("Failed to write AI usage log") from e

        return self._to_model(attrs)

    def _increment_user_daily(
        self, organization_id: str, user_sub: str, tokens_used: int
    ) -> None:
        ts = dates.now()

        try:
            self._safe_update(
                Key=self._user_daily_key(organization_id, user_sub, ts.date()),
                UpdateExpression=(
                    "ADD requests_today :one, tokens_used_today :tokens "
                    "SET #type = :type, organization_id = :org, user_sub = :sub, "
                    "updated_at = :ua, #ttl = :ttl"
                ),
                ExpressionAttributeNames={"#type": "type", "#ttl": "ttl"},
                ExpressionAttributeValues={
                    ":one": 1,
                    ":tokens": tokens_used,
                    ":type": "ai_user_daily_usage",
                    ":org": organization_id,
                    ":sub": user_sub,
                    ":ua": dt_to_iso(ts),
                    ":ttl": dates.to_epoch(ts + USER_DAILY_TTL),
                },
            )
        except RepoError as e:
            logger.error(f"Repo error recording daily AI usage for user {user_sub}: {e}")
            raise OrganizationRepoError("Failed to record user AI usage") from e
