"""
Shared test fixtures.

Sets up an isolated test database so tests never touch
the real database. Tables are created before each test and
dropped after it, so every test starts from an empty ledger
holding only the default accounts.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from tenacity import wait_none

from budget_ledger.main import app
from budget_ledger.models.base import Base, get_db
from budget_ledger.services.ledger_client import LedgerClient, get_ledger
from budget_ledger.services.retry import RetryPolicy


# SQLite keeps the tests free of external database infrastructure.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

# Same attempt budget as production, without the sleeping
NO_WAIT = RetryPolicy(max_attempts=5, wait=wait_none())


class CountingSessionFactory:
    """Session factory wrapper counting how many units of work were started."""

    def __init__(self, factory):
        self.factory = factory
        self.begins = 0

    def begin(self):
        self.begins += 1
        return self.factory.begin()


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct database access."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def session_factory():
    return TestSessionLocal


@pytest.fixture
def retry_policy():
    return NO_WAIT


@pytest.fixture
def counting_factory():
    return CountingSessionFactory(TestSessionLocal)


@pytest.fixture
def ledger():
    """A ledger on the test database with the default accounts seeded."""
    client = LedgerClient(TestSessionLocal, NO_WAIT)
    client.ensure_default_accounts()
    return client


@pytest.fixture
def client(ledger, db_session):
    """
    Provide a test client with the test database.

    The ledger and session dependencies are overridden so the
    FastAPI app uses the test database instead of the real one.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ledger] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()
