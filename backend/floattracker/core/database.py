"""
database.py — Database Session & Connection Management

Purpose:
- Create and provide access to the SQL database used by `SqlFloatStore`.
- Build SQLAlchemy engines and session factories for a given URL.
- Expose the shared declarative `Base` all ORM models register on.

Key Characteristics:
- Synchronous SQLAlchemy engine; filings are parsed sequentially anyway.
- No Alembic migrations — schema is expected to exist (created in Supabase),
  `create_schema()` exists for local SQLite runs and tests.

This module does NOT:
- Define ORM models (see floattracker/models/*).
- Perform any queries or business logic.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def normalize_db_url(db_url: str) -> str:
    """Use the psycopg (v3) driver for bare postgresql:// URLs."""
    if db_url.startswith("postgresql://") and "+" not in db_url.split("://")[0]:
        return db_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return db_url


def build_engine(db_url: str) -> Engine:
    """Create an engine for the given URL."""
    db_url = normalize_db_url(db_url.strip())
    if db_url.startswith("sqlite"):
        return create_engine(db_url)
    return create_engine(
        db_url,
        pool_pre_ping=True  # Ensures connections are valid before use
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_schema(engine: Engine) -> None:
    """Create all tables registered on `Base` (local runs and tests)."""
    # Importing the package registers every model on Base.metadata
    import floattracker.models  # noqa: F401

    Base.metadata.create_all(bind=engine)

