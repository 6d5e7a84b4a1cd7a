import os

# Must be set before the app (and its settings) are imported.
os.environ["NODE_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""
os.environ["SENTRY_DSN"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from db import SessionLocal, engine  # noqa: E402
from quiz_api.core.settings import Settings  # noqa: E402
from quiz_api.models import Base  # noqa: E402
from quiz_api.services import auth as auth_service  # noqa: E402

PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True)
def schema():
    """Fresh in-memory schema per test (StaticPool keeps one shared connection)."""
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_settings():
    def _make(**overrides) -> Settings:
        # NODE_ENV is passed under the same key as the environment variable so it wins
        values = {"NODE_ENV": "test", "LOG_FILE": "", "DATABASE_URL": "sqlite://"}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def make_app(make_settings):
    from main import create_app

    def _make(**overrides):
        return create_app(make_settings(**overrides))

    return _make


@pytest.fixture
def client(make_app):
    # New app per test so rate-limit state starts empty
    return TestClient(make_app())


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session):
    """Create a user and return ``(user, auth_headers)``."""
    counter = {"n": 0}

    def _make(role: str = "student", email: str = None, name: str = None):
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@example.test"
        user = auth_service.create_user(
            db_session, name or f"{role.title()} {counter['n']}", email, PASSWORD, role=role
        )
        session = auth_service.create_session(db_session, user_id=user.UserID)
        return user, {"Authorization": f"Bearer {session.SessionID}"}

    return _make


def sample_quiz(published: bool = True, **overrides) -> dict:
    quiz = {
        "title": "Capitals",
        "description": "European capitals",
        "is_published": published,
        "questions": [
            {"prompt": "Capital of France?", "options": ["Paris", "Lyon"], "correct_index": 0},
            {
                "prompt": "Capital of Italy?",
                "options": ["Milan", "Rome", "Turin"],
                "correct_index": 1,
                "points": 2,
            },
        ],
    }
    quiz.update(overrides)
    return quiz


@pytest.fixture
def quiz_payload():
    return sample_quiz
