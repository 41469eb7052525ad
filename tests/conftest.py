import os

# Ensure background jobs stay disabled during tests
os.environ.setdefault("ENABLE_BACKGROUND_JOBS", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from moviedb.database import Base, get_db
from moviedb.main import app
from moviedb.models.user import User
from moviedb.utils.cache import CacheStore, get_cache_store
from moviedb.utils.security import create_access_token, hash_password

SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_user(session, email="owner@example.com", password="Password123", name="Owner"):
    user = User(email=email, password_hash=hash_password(password), name=name)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers_for(user):
    token = create_access_token(data={"sub": user.email, "user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def db_session():
    """Provide a clean database session for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def cache_store():
    """Fresh read cache per test so entries never leak between tests."""
    return CacheStore()


@pytest.fixture
def client(db_session, cache_store, monkeypatch):
    """FastAPI test client with the database and cache dependencies overridden."""

    def override_get_db():
        test_db = TestingSessionLocal()
        try:
            yield test_db
        finally:
            test_db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache_store] = lambda: cache_store
    monkeypatch.setenv("ENABLE_BACKGROUND_JOBS", "false")

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_cache_store, None)


@pytest.fixture
def owner(db_session):
    return create_user(db_session)


@pytest.fixture
def owner_headers(owner):
    return auth_headers_for(owner)


@pytest.fixture
def other_user(db_session):
    return create_user(db_session, email="other@example.com", name="Other")


@pytest.fixture
def other_headers(other_user):
    return auth_headers_for(other_user)


@pytest.fixture
def make_user(db_session):
    """Factory returning (user, auth headers) for additional accounts."""

    def _make(email, name="User"):
        user = create_user(db_session, email=email, name=name)
        return user, auth_headers_for(user)

    return _make
