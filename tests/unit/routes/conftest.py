import pytest

from app.alternatives.cache import AlternativesCache
from app.alternatives.engine import AlternativesEngine
from app.routes import alternatives as alternatives_routes
from tests.fakes import FakeOrganizationRepo
from tests.test_data import ORG_ID


@pytest.fixture
def fake_org_repo(app_instance):
    """
    Override get_organization_repo() for the duration of a test.
    """
    repo = FakeOrganizationRepo(ORG_ID)
    app_instance.dependency_overrides[alternatives_routes.get_organization_repo] = (
        lambda: repo
    )
    try:
        yield repo
    finally:
        app_instance.dependency_overrides.pop(
            alternatives_routes.get_organization_repo, None
        )


@pytest.fixture
def ranker(fake_ranker):
    return fake_ranker()


@pytest.fixture
def fake_engine(app_instance, exercise_repo, cache_repo, executor, ranker):
    """
    Override get_engine() with an engine over the in-memory catalog and cache.
    Tests can swap `ranker` for a different fake by overriding that fixture.
    """
    engine = AlternativesEngine(
        exercise_repo, AlternativesCache(cache_repo, executor=executor), ranker
    )
    app_instance.dependency_overrides[alternatives_routes.get_engine] = lambda: engine
    try:
        yield engine
    finally:
        app_instance.dependency_overrides.pop(alternatives_routes.get_engine, None)
