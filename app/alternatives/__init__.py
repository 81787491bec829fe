from .cache import AlternativesCache, build_cache_key, calculate_equipment_hash
from .engine import AlternativesEngine, merge_rankings
from .ranker import OpenAIRanker, estimate_tokens
from .scoring import calculate_score, generate_reason

__all__ = [
    "AlternativesCache",
    "AlternativesEngine",
    "OpenAIRanker",
    "build_cache_key",
    "calculate_equipment_hash",
    "calculate_score",
    "estimate_tokens",
    "generate_reason",
    "merge_rankings",
]
