"""
pytest Fixtures for Skeleton API Tests

This file contains shared fixtures used across all test files.

FIXTURE SCOPES:
- session scope for the engine (expensive to create)
- function scope for sessions and clients (isolation between tests)

Two kinds of client are available:
- client: the module-level app from skeleton_api.main (rate limiting off)
- make_client: a factory that builds a fresh app from explicit settings,
  for pipeline tests that need a small rate limit, an in-memory span
  exporter or an alert webhook
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_MIGRATE"] = "false"
os.environ.pop("REDIS_URL", None)
os.environ.pop("ALERT_WEBHOOK_URL", None)

from collections.abc import Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from skeleton_api.config import Settings
from skeleton_api.database import create_tables, drop_tables, get_db
from skeleton_api.main import app, create_app
from skeleton_api.models import Example
from skeleton_api.services.security import TokenService

# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory keeps the suite self-contained; production runs on
# PostgreSQL.


@pytest.fixture(scope="session")
def engine():
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the connection alive for the entire session.
    Without it, SQLite in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    create_tables(engine)

    yield engine

    drop_tables(engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Create a fresh database session for each test.

    The session is wrapped in a transaction that's rolled back,
    ensuring test isolation without needing to recreate tables.
    """
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


def _override_db(target: FastAPI, db_session: Session) -> None:
    def override_get_db():
        """Provide test database session instead of real one."""
        yield db_session

    target.dependency_overrides[get_db] = override_get_db


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    We override the get_db dependency to use our test session.
    """
    _override_db(app, db_session)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def make_client(db_session: Session) -> Generator[Callable[..., TestClient], None, None]:
    """
    Factory for clients of freshly built apps.

    Usage:
        test_client = make_client(rate_limit_enabled=True, rate_limit_requests=2)
        test_client = make_client(span_exporter=exporter)
        test_client.app  # the FastAPI instance, for adding routes or reading state
    """
    opened: list[TestClient] = []

    def factory(span_exporter=None, **overrides) -> TestClient:
        settings = Settings(**overrides)
        new_app = create_app(settings, span_exporter=span_exporter)
        _override_db(new_app, db_session)
        test_client = TestClient(new_app)
        test_client.__enter__()
        opened.append(test_client)
        return test_client

    yield factory

    for test_client in opened:
        test_client.__exit__(None, None, None)


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def tokens() -> TokenService:
    """The token service the module-level app verifies against."""
    return app.state.tokens


@pytest.fixture
def auth_headers(tokens: TokenService) -> Callable[..., dict[str, str]]:
    """
    Build Authorization headers for an identity.

    Usage:
        client.post(url, json=..., headers=auth_headers("alice"))
    """

    def build(name: str = "alice", subject_id: int = 1) -> dict[str, str]:
        return {"Authorization": f"Bearer {tokens.issue(subject_id, name)}"}

    return build


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_example(db_session: Session) -> Example:
    """An example owned by alice."""
    example = Example(
        title="First example",
        description="The first example record",
        status=1,
        sort_order=0,
        created_by="alice",
    )
    db_session.add(example)
    db_session.commit()
    db_session.refresh(example)
    return example


@pytest.fixture
def multiple_examples(db_session: Session) -> list[Example]:
    """Create 25 examples for pagination testing (more than one default page)."""
    examples = []
    for i in range(25):
        example = Example(
            title=f"Example {i + 1}",
            description=f"Description for example {i + 1}",
            sort_order=i,
            created_by="alice" if i % 2 == 0 else "bob",
        )
        examples.append(example)
        db_session.add(example)

    db_session.commit()
    for example in examples:
        db_session.refresh(example)

    return examples
