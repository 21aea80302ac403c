"""
Shared test fixtures.

Sets up an isolated SQLite test database so tests never touch
the real database. Tables are created before each test and
dropped after it, so no test data persists.
"""

import os
from decimal import Decimal

# Cheap password hashing; must be set before settings are first loaded
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from aurora_bank.main import app
from aurora_bank.models.base import Base, get_db
from aurora_bank.schemas.account import AccountOpen
from aurora_bank.services.account_service import AccountService
from aurora_bank.stores.memory import InMemoryAccountStore, InMemoryLedgerStore
from aurora_bank.services.transfer_engine import TransferEngine


# SQLite needs no database server, so the suite runs anywhere.
# Row locks (FOR UPDATE) are a no-op here; lock behaviour is
# covered by the in-memory store tests.
TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client(db_session):
    """
    Provide a test client with the test database.

    The get_db dependency is overridden so the app uses the
    test session instead of the real database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def open_account(db_session):
    """Factory: open and commit an account, return it."""
    counter = {"n": 0}

    def _open(balance="0", email=None, password="correct-horse", name="Test User"):
        counter["n"] += 1
        service = AccountService(db_session)
        account = service.open_account(AccountOpen(
            name=name,
            email=email or f"user{counter['n']}@aurora.test",
            password=password,
            opening_balance=Decimal(balance),
        ))
        db_session.commit()
        return account

    return _open


# --- In-memory engine fixtures ---

@pytest.fixture
def accounts():
    return InMemoryAccountStore()


@pytest.fixture
def ledger():
    return InMemoryLedgerStore()


@pytest.fixture
def transfer_engine(accounts, ledger):
    return TransferEngine(accounts, ledger, lock_timeout=1.0)
