import pytest
from fastapi.testclient import TestClient

from relations_demo import models
from relations_demo.config import Settings
from relations_demo.database import open_store
from relations_demo.main import create_app

# In-memory SQLite; open_store shares one connection via StaticPool.
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture()
def store():
    """A fresh in-memory store with all tables created."""
    with open_store(TEST_DATABASE_URL) as test_store:
        test_store.create_schema()
        yield test_store


@pytest.fixture()
def db_session(store):
    db = store.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(store):
    """TestClient for the fluency app bound to the in-memory store."""
    app = create_app(store, Settings(app_name="Relations Test"))
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def user_factory(db_session):
    def _create_user(user_name: str) -> models.User:
        user = models.User(user_name=user_name)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture()
def language_factory(db_session):
    def _create_language(language_name: str) -> models.Language:
        language = models.Language(language_name=language_name)
        db_session.add(language)
        db_session.commit()
        db_session.refresh(language)
        return language

    return _create_language


@pytest.fixture()
def fluency_factory(db_session):
    """Inserts fluency rows directly, bypassing the existence checks."""

    def _create_fluency(user_id: int, language_id: int, level: str) -> models.Fluency:
        fluency = models.Fluency(user_id=user_id, language_id=language_id, level=level)
        db_session.add(fluency)
        db_session.commit()
        db_session.refresh(fluency)
        return fluency

    return _create_fluency
