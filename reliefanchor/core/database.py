"""
On-device database configuration and connection management.

This module provides:
- SQLAlchemy engine management for the local SQLite file
- In-memory engine support for tests
- The single key/value table every profile blob lives in
"""
from typing import Optional
from sqlalchemy import create_engine, MetaData, Table, Column, String, DateTime, Text, select
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import func
import os

from reliefanchor.core.config import settings


# SQLAlchemy metadata for table definitions
metadata = MetaData()

# Global engine
_engine = None


def get_database_url() -> str:
    """
    Get the database URL from settings or environment.

    For testing, use TEST_DATABASE_URL if available.
    """
    test_url = os.getenv("TEST_DATABASE_URL")
    if test_url:
        return test_url

    return settings.DATABASE_URL


def build_engine(database_url: str) -> Engine:
    """Create an engine suited to a local SQLite file or an in-memory database."""
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every checkout sees an empty database
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args, echo=False)


def init_engine(database_url: Optional[str] = None):
    """
    Initialize the SQLAlchemy engine.

    Args:
        database_url: Optional override for DATABASE_URL
    """
    global _engine

    url = database_url or get_database_url()

    if not url:
        raise ValueError(
            "DATABASE_URL is not configured. "
            "Set DATABASE_URL in environment or .env file."
        )

    _engine = build_engine(url)

    return _engine


def get_engine():
    """Get the current SQLAlchemy engine."""
    global _engine
    if _engine is None:
        init_engine()
    return _engine


def create_all_tables(engine: Optional[Engine] = None):
    """
    Create all tables defined in metadata.

    This is idempotent - tables that already exist will not be recreated.
    """
    metadata.create_all(bind=engine or get_engine())


def check_connection(engine: Optional[Engine] = None) -> bool:
    """
    Check if database connection is available.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        eng = engine or get_engine()
        with eng.connect() as conn:
            conn.execute(select(1))
        return True
    except Exception:
        return False


# Opaque text blobs keyed by namespaced storage key (record, moods, chat,
# journal per profile, plus the active session pointer)
device_storage = Table(
    'device_storage',
    metadata,
    Column('storage_key', String(255), primary_key=True),
    Column('value', Text, nullable=False),
    Column('updated_at', DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
)
