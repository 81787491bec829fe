import pytest

from app.alternatives.cache import AlternativesCache
from app.models.alternatives import AIRanking, RankingFailed, RankingOk
from tests.fakes import make_openai_client
from tests.test_data import AIR_SQUAT_ID


@pytest.fixture
def cache(cache_repo, executor) -> AlternativesCache:
    return AlternativesCache(cache_repo, executor=executor, ttl_days=7)


@pytest.fixture
def failed_outcome() -> RankingFailed:
    return RankingFailed(reason="APIError: upstream unavailable")


@pytest.fixture
def partial_outcome() -> RankingOk:
    return RankingOk(
        rankings=[
            AIRanking(id=AIR_SQUAT_ID, score=99, reason="Bodyweight squat, same pattern"),
            AIRanking(id="not-a-candidate", score=98, reason="Hallucinated"),
        ],
        tokens_used=190,
    )


@pytest.fixture
def openai_client():
    """
    Factory for fake OpenAI clients.
    Usage:
        client = openai_client('{"rankings": []}')
        client = openai_client(raises=TimeoutError("slow"))
    """
    return make_openai_client
