# backend/tests/integration/conftest.py
"""
Database and HTTP fixtures for integration tests.

Each test gets a fresh in-memory SQLite database shared by every
connection (StaticPool), so the session handed to TestClient sees the rows
the test seeded.
"""

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.api.dependencies.database import get_db
from app.api.dependencies.services import get_date_utility, get_policy_cache
from app.database import Base
from app.main import app
from app.models import Organization
from app.services.policy_cache import InMemoryPolicyCache
from tests._utils.db_seed import seed_interval, seed_organization
from tests._utils.scheduling import policy_document

test_engine = create_engine(
    "sqlite+pysqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine, expire_on_commit=False
)


@pytest.fixture(scope="function")
def db():
    """Create a new database session with empty tables for each test."""
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def policy_cache() -> InMemoryPolicyCache:
    return InMemoryPolicyCache()


@pytest.fixture
def client(db: Session, date_utility, policy_cache):
    """Create a test client bound to the test session, clock and policy cache."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_date_utility] = lambda: date_utility
    app.dependency_overrides[get_policy_cache] = lambda: policy_cache

    # No context manager: the lifespan would create tables on the app engine
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def clinic(db: Session) -> Organization:
    """Tenant with the default policy and a doctor working weekdays 09:00-17:00."""
    organization = seed_organization(db, booking_settings=policy_document())
    for day in range(1, 6):
        seed_interval(db, day, "09:00", "17:00")
    db.commit()
    return organization
