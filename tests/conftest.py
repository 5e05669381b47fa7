"""Pytest configuration and fixtures."""

import os

# Settings are cached on first import; configure them for tests up front
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("COOKIE_SECURE", "false")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from src.database import Base, build_engine, get_db
from src.main import app
from src.services.credentials import CredentialStore

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL") + "_test"
else:
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = build_engine(SQLALCHEMY_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret1"


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    from src import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def session_factory():
    """Factory for independent sessions, one per simulated request."""
    return TestingSessionLocal


@pytest.fixture
def store(db):
    return CredentialStore(db)


@pytest.fixture
def ann(store):
    """A registered user."""
    return store.register("Ann", "Ann@Example.com", PASSWORD, PASSWORD)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def signed_in_client(client):
    """Client holding the session cookie of a freshly registered user."""
    response = client.post(
        "/api/v1/auth/register",
        json={
            "name": "Test User",
            "email": "test@example.com",
            "password": "testpass123",
            "password_confirmation": "testpass123",
        },
    )
    assert response.status_code == 201
    client.user_id = response.json()["user"]["id"]
    return client
