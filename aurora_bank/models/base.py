"""
Database engine, session management, and base model.

Accounts, ledger entries and loans all inherit from Base. Every
request gets its own session from get_db(), and the transfer
engine's SQL stores work inside that session.
"""

from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from aurora_bank.config import get_settings

settings = get_settings()

# Every money column is Numeric(MONEY_PRECISION, MONEY_SCALE), so the
# largest storable amount has 17 integer digits.
MONEY_PRECISION = 19
MONEY_SCALE = 2
MAX_MONEY = Decimal(10) ** (MONEY_PRECISION - MONEY_SCALE) - Decimal("0.01")


def _connect_args(url: str) -> dict:
    # SQLite connections are shared across the server's worker threads
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# --- Engine ---
# pool_pre_ping=True tests connections before using them,
# so a restarted database does not fail the next transfer.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

# --- Session Factory ---
# autocommit=False: the transfer engine decides when a balance
# update and its ledger row are committed together.
# autoflush=False: SQL is only sent on explicit flush or commit.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    pass


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The try/finally pattern ensures the session is always
    closed, preventing connection leaks.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
