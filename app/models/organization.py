from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.utils.dates import dt_to_iso
from app.utils.taxonomy import DEFAULT_EQUIPMENT

AiPlan = Literal["free", "pro", "business", "enterprise"]


class OrganizationAiUsage(BaseModel):
    PK: str  # "ORG#<organization_id>"
    SK: Literal["AI_USAGE"] = "AI_USAGE"
    type: Literal["ai_usage"] = "ai_usage"

    organization_id: str
    ai_plan: AiPlan = "free"
    ai_enabled: bool = True

    monthly_token_limit: int = Field(ge=0)
    tokens_used_this_period: int = Field(default=0, ge=0)
    requests_this_period: int = Field(default=0, ge=0)
    # None means no per-user cap
    max_requests_per_user_daily: int | None = Field(default=10, ge=1)

    period_start_date: date | None = None
    period_end_date: date | None = None  # exclusive

    created_at: datetime
    updated_at: datetime

    @property
    def remaining_tokens(self) -> int:
        return max(0, self.monthly_token_limit - self.tokens_used_this_period)

    @property
    def can_use_ai_ranking(self) -> bool:
        return (
            self.ai_enabled
            and self.tokens_used_this_period < self.monthly_token_limit
        )

    def period_has_ended(self, today: date) -> bool:
        """Rows without a period are treated as ended so they get one."""
        return self.period_end_date is None or self.period_end_date <= today

    def remaining_user_requests(self, requests_today: int) -> int | None:
        if self.max_requests_per_user_daily is None:
            return None
        return max(0, self.max_requests_per_user_daily - requests_today)

    def to_ddb_item(self) -> dict:
        data = self.model_dump()
        data["created_at"] = dt_to_iso(self.created_at)
        data["updated_at"] = dt_to_iso(self.updated_at)
        for field in ("period_start_date", "period_end_date"):
            value = data.pop(field)
            if value is not None:
                data[field] = value.isoformat()
        return data


class OrganizationEquipment(BaseModel):
    PK: str  # "ORG#<organization_id>"
    SK: Literal["EQUIPMENT"] = "EQUIPMENT"
    type: Literal["equipment"] = "equipment"

    organization_id: str
    available_equipment: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EQUIPMENT)
    )
    unavailable_equipment: list[str] = Field(default_factory=list)

    def resolve(self) -> list[str]:
        """Available equipment with anything temporarily unavailable removed."""
        unavailable = set(self.unavailable_equipment)
        return [eq for eq in self.available_equipment if eq not in unavailable]


class UsageLogEntry(BaseModel):
    PK: str
    SK: str  # "AI_LOG#<created_at>#<uuid>"
    type: Literal["ai_usage_log"] = "ai_usage_log"

    organization_id: str
    user_sub: Optional[str] = None
    feature: str = "alternatives"
    exercise_id: Optional[str] = None

    tokens_used: int = 0
    was_cached: bool = False
    response_time_ms: int | None = None
    alternatives_count: int | None = None

    created_at: datetime

    def to_ddb_item(self) -> dict:
        data = self.model_dump()
        data["created_at"] = dt_to_iso(self.created_at)
        return data
