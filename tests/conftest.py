"""
Pytest configuration and fixtures for Social API tests.
"""
import os

# Configure before the app (and its cached settings) is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.limiter import limiter
from app.main import app
from app.models.enums import Role, Tier
from app.models.user import User
from app.auth import get_password_hash, create_access_token

# Disable rate limiting for tests
limiter.enabled = False

TEST_PASSWORD = "testpassword123"

# Use in-memory SQLite for tests with shared connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Global session for sharing across requests
_test_session = None


def get_test_db():
    """Get the shared test database session."""
    global _test_session
    try:
        yield _test_session
    finally:
        pass


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    global _test_session

    Base.metadata.create_all(bind=engine)

    _test_session = TestingSessionLocal()

    # Override the get_db dependency
    app.dependency_overrides[get_db] = get_test_db

    yield _test_session

    # Cleanup
    app.dependency_overrides.clear()
    _test_session.close()
    _test_session = None

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def make_user(db):
    """Factory creating users directly in the store."""
    counter = {"n": 0}

    def _make_user(tier=Tier.FREE, role=Role.USER, username=None, email=None, name=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=email or f"user{n}@example.com",
            username=username or f"user{n}",
            hashed_password=get_password_hash(TEST_PASSWORD),
            tier=tier.value,
            role=role.value,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture(scope="function")
def test_user(make_user):
    """Create a free-tier test user."""
    return make_user(email="test@example.com", username="testuser", name="Test User")


@pytest.fixture(scope="function")
def premium_user(make_user):
    return make_user(tier=Tier.PREMIUM, email="premium@example.com", username="premiumuser")


@pytest.fixture(scope="function")
def admin_user(make_user):
    return make_user(role=Role.ADMIN, email="admin@example.com", username="adminuser")


def headers_for(user: User) -> dict:
    """Bearer headers carrying a freshly issued token for user."""
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture(scope="function")
def auth_headers(test_user):
    """Get auth headers for the test user."""
    return headers_for(test_user)


@pytest.fixture(scope="function")
def headers():
    """Callable returning bearer headers for any user."""
    return headers_for
