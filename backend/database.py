"""
Database Configuration Module

This module handles the database configuration and connection setup for the ledger backend.
It uses SQLAlchemy for ORM (Object-Relational Mapping) with PostgreSQL as the database.

The module includes:
- Database connection setup
- Session management and the atomic unit used by the ledger engine
- Base model class definition
- Soft delete filter implementation
"""

from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session, with_loader_criteria
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv
import os

# Load environment variables from .env file
load_dotenv()

# Database connection settings
# These settings can be configured via environment variables
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_SERVER = os.getenv("POSTGRES_SERVER", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
POSTGRES_DB = os.getenv("POSTGRES_DB", "ledger_db")

# DATABASE_URL wins when present (used by tests and local sqlite runs)
SQLALCHEMY_DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg2://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_SERVER}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # A single shared connection keeps an in-memory database alive across sessions
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(SQLALCHEMY_DATABASE_URL, pool_pre_ping=True)

# autocommit=False means we need to explicitly commit transactions
# autoflush=False means we need to explicitly flush changes to the database
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@event.listens_for(Session, "do_orm_execute")
def add_soft_delete_filter(execute_state):
    """
    Event listener that automatically filters out "soft-deleted" records.

    Adds a `deleted_at IS NULL` criteria to every ORM SELECT touching a model
    with a `deleted_at` column. Pass `execution_options(include_deleted=True)`
    on a query to see deleted rows as well.
    """
    if (
        execute_state.is_select
        and not execute_state.is_relationship_load
        and not execute_state.is_column_load
        and not execute_state.execution_options.get("include_deleted", False)
    ):
        for entity in execute_state.statement.column_descriptions:
            if hasattr(entity['type'], 'deleted_at'):
                execute_state.statement = execute_state.statement.options(
                    with_loader_criteria(
                        entity['type'],
                        lambda cls: cls.deleted_at.is_(None),
                        include_aliases=True
                    )
                )


@contextmanager
def transaction_scope(db: Session):
    """
    Run a block of writes as one atomic unit.

    Commits when the block finishes and rolls back every pending write when
    anything inside it raises, so a failed guard never leaves a partial ledger entry.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_db():
    """
    Dependency function that provides a database session.

    Yields:
        Session: A SQLAlchemy database session, closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
