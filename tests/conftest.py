# =============================================================================
# Shared pytest fixtures: a throwaway SQLite file per test, the FastAPI app
# built on top of it, and helpers for users and bearer tokens.
# =============================================================================

import copy
from typing import Callable, Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from quizhub import model  # noqa: F401  registers every table on Base.metadata
from quizhub.auth_util import create_access_token, get_password_hash
from quizhub.config import Settings
from quizhub.database.base_class import Base
from quizhub.database.session import get_engine, get_local_session
from quizhub.main import create_app
from quizhub.model.users import User


CAPITALS_PAYLOAD = {
    "title": "Capitals",
    "questions": [
        {
            "statement": "Capital of France?",
            "answers": [
                {"text": "Paris", "is_correct": True},
                {"text": "Lyon", "is_correct": False},
            ],
        }
    ],
}


@pytest.fixture
def engine(tmp_path):
    engine = get_engine(f"sqlite:///{tmp_path / 'quizhub_test.sqlite'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_local_session(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings():
    return Settings(ENV="test", API_PREFIX="/api", OPENAI_API_KEY="test-key-123")


@pytest.fixture
def app(test_settings, engine):
    return create_app(test_settings, engine=engine)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(db) -> Callable[..., User]:
    """Insert an active account and return it."""
    counter = {"n": 0}

    def _make(name: str = None, email: str = None, password: str = "secret123", is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"user{counter['n']}",
            email=email or f"user{counter['n']}@quizhub.io",
            hashed_password=get_password_hash(password),
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(subject=user.id, email=user.email)}"}

    return _headers


@pytest.fixture
def capitals_payload():
    return copy.deepcopy(CAPITALS_PAYLOAD)


@pytest.fixture
def row_count(engine) -> Callable:
    """Count rows of a model straight from the database, bypassing any session."""

    def _count(model_cls, *criteria) -> int:
        with engine.connect() as conn:
            stmt = select(func.count()).select_from(model_cls)
            if criteria:
                stmt = stmt.where(*criteria)
            return conn.execute(stmt).scalar_one()

    return _count
