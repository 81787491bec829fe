from .alternatives import CacheEntry, CacheKey
from .exercise import Exercise, ExerciseAlternative, ExerciseAlternativeData
from .organization import OrganizationAiUsage, OrganizationEquipment, UsageLogEntry

__all__ = [
    "CacheEntry",
    "CacheKey",
    "Exercise",
    "ExerciseAlternative",
    "ExerciseAlternativeData",
    "OrganizationAiUsage",
    "OrganizationEquipment",
    "UsageLogEntry",
]
