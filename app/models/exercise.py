from datetime import datetime
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field, StringConstraints

from app.utils.dates import dt_to_iso

NameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=100),
]

TagStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=50),
]

CategoryStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=50),
]


class Exercise(BaseModel):
    """
    A catalog exercise. Global exercises have organization_id=None and live in
    the global catalog partition; organisation exercises live under ORG#<id>.
    """

    PK: str
    SK: str  # "EXERCISE#<uuid>"
    type: Literal["exercise"] = "exercise"

    name: NameStr
    name_es: Optional[str] = None
    name_en: Optional[str] = None
    description: Optional[str] = None

    category: Optional[CategoryStr] = None
    movement_pattern: Optional[TagStr] = None
    muscle_groups: list[TagStr] = Field(default_factory=list)
    equipment: list[TagStr] = Field(default_factory=list)
    difficulty: Optional[TagStr] = None

    gif_url: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None

    organization_id: Optional[str] = None
    is_active: bool = True

    created_at: datetime
    updated_at: datetime

    @property
    def exercise_id(self) -> str:
        return self.SK.split("#")[-1]

    @property
    def is_global(self) -> bool:
        return self.organization_id is None

    def to_ddb_item(self) -> dict:
        data = self.model_dump()
        data["created_at"] = dt_to_iso(self.created_at)
        data["updated_at"] = dt_to_iso(self.updated_at)
        return data

    def to_alternative_data(self) -> "ExerciseAlternativeData":
        return ExerciseAlternativeData(
            id=self.exercise_id,
            name=self.name,
            name_es=self.name_es,
            category=self.category,
            muscle_groups=list(self.muscle_groups),
            equipment=list(self.equipment),
            difficulty=self.difficulty,
            gif_url=self.gif_url,
            movement_pattern=self.movement_pattern,
        )


class ExerciseAlternativeData(BaseModel):
    """The slice of an exercise returned to callers and kept in the cache."""

    id: str
    name: str
    name_es: Optional[str] = None
    category: Optional[str] = None
    muscle_groups: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    difficulty: Optional[str] = None
    gif_url: Optional[str] = None
    movement_pattern: Optional[str] = None


class ExerciseAlternative(BaseModel):
    exercise: ExerciseAlternativeData
    reason: str
    score: int = Field(ge=0, le=100)
