from datetime import datetime, timezone
from typing import Any, Callable

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from app.main import app
from app.models.exercise import Exercise
from app.settings import settings
from app.utils import auth as auth_utils
from app.utils import dates, db
from tests.fakes import (
    FakeExerciseRepo,
    FakeRanker,
    ImmediateExecutor,
    InMemoryCacheRepo,
)
from tests.test_data import (
    AIR_SQUAT_ID,
    BOX_SQUAT_ID,
    GOBLET_ID,
    LEG_PRESS_ID,
    ORG_ID,
    OTHER_ORG_ID,
    SQUAT_ID,
    TEST_CREATED_DATETIME,
    TEST_UPDATED_DATETIME,
    USER_SUB,
)


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests():
    settings.RATE_LIMIT_ENABLED = False
    yield
    settings.RATE_LIMIT_ENABLED = True


@pytest.fixture
def fixed_now(monkeypatch) -> datetime:
    now = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    monkeypatch.setattr(dates, "now", lambda: now)
    return now


# --------------- Request ---------------


@pytest.fixture
def make_request_with_headers():
    """
    Fixture returning a function that builds a FastAPI Request with given headers.
    Example:
        request = make_request_with_headers({"authorization": "Bearer abc"})
    """

    def _build(headers: dict) -> Request:
        scope = {
            "type": "http",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        }
        return Request(scope)

    return _build


# --------------- Test Clients ---------------


@pytest.fixture(scope="session")
def app_instance():
    return app


@pytest.fixture
def client(app_instance):
    """Plain client, real dependencies."""
    return TestClient(app_instance, raise_server_exceptions=False)


@pytest.fixture
def authenticated_client(app_instance):
    """
    Client with auth.require_auth overridden to always
    return fake, valid claims for a user in ORG_ID.
    """

    def fake_require_auth(request: Request):
        return {"sub": USER_SUB, settings.ORGANIZATION_CLAIM: ORG_ID}

    app_instance.dependency_overrides[auth_utils.require_auth] = fake_require_auth
    client = TestClient(app_instance, raise_server_exceptions=False)

    try:
        yield client
    finally:
        # Clean up so other tests see the real dependency
        app_instance.dependency_overrides.pop(auth_utils.require_auth, None)


# --------------- Item Factories ---------------


@pytest.fixture
def exercise_factory() -> Callable[..., Exercise]:
    """
    Build catalog exercises. Defaults describe a global barbell back squat;
    pass exercise_id and any field overrides.
    """

    def _make(exercise_id: str = SQUAT_ID, **overrides: Any) -> Exercise:
        base = {
            "PK": db.build_catalog_pk(overrides.get("organization_id")),
            "SK": db.build_exercise_sk(exercise_id),
            "type": "exercise",
            "name": "Back Squat",
            "category": "strength",
            "movement_pattern": "squat",
            "muscle_groups": ["quadriceps", "glutes"],
            "equipment": ["barbell"],
            "difficulty": "intermediate",
            "created_at": TEST_CREATED_DATETIME,
            "updated_at": TEST_UPDATED_DATETIME,
        }
        return Exercise(**{**base, **overrides})

    return _make


@pytest.fixture
def source_exercise(exercise_factory) -> Exercise:
    return exercise_factory()


@pytest.fixture
def catalog(exercise_factory, source_exercise) -> list[Exercise]:
    """
    Squat family around the source back squat: three global variants, one
    owned by ORG_ID, one owned by another organisation and one retired.
    """
    return [
        source_exercise,
        exercise_factory(
            GOBLET_ID,
            name="Goblet Squat",
            equipment=["dumbbell"],
            difficulty="beginner",
        ),
        exercise_factory(
            AIR_SQUAT_ID,
            name="Air Squat",
            equipment=["bodyweight"],
            muscle_groups=["quadriceps"],
            difficulty="beginner",
        ),
        exercise_factory(
            BOX_SQUAT_ID,
            name="Box Squat",
            equipment=["barbell", "bench"],
        ),
        exercise_factory(
            LEG_PRESS_ID,
            name="Studio Leg Press",
            equipment=["machine"],
            organization_id=ORG_ID,
        ),
        exercise_factory(
            "other-org-squat",
            name="Other Gym Squat",
            organization_id=OTHER_ORG_ID,
        ),
        exercise_factory(
            "retired-squat",
            name="Retired Squat",
            is_active=False,
        ),
    ]


# --------------- Fakes ---------------


@pytest.fixture
def exercise_repo(catalog) -> FakeExerciseRepo:
    return FakeExerciseRepo(catalog)


@pytest.fixture
def cache_repo() -> InMemoryCacheRepo:
    return InMemoryCacheRepo()


@pytest.fixture
def executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def fake_ranker():
    return FakeRanker
