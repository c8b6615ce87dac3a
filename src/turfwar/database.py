"""Database connection and session management.

This module provides database engine construction, session factories,
and utility functions for database operations.
"""

from typing import Any

from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from turfwar.config import Settings, get_settings
from turfwar.models import Base

SQLITE_BUSY_TIMEOUT_SECONDS = 15


def _configure_sqlite(
    dbapi_connection: Any, connection_record: Any  # noqa: ARG001
) -> None:
    """Configure SQLite for concurrent access.

    Args:
        dbapi_connection: The DBAPI connection
        connection_record: Connection record (required by SQLAlchemy event API)

    Note:
        WAL mode lets readers proceed while a writer holds the lock, so
        listing queries never wait on a challenge in flight.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: Settings | None = None) -> Engine:
    """Create and configure the database engine.

    Args:
        settings: Settings to read the URL and pool options from; defaults to
            the cached application settings

    Returns:
        Engine: Configured SQLAlchemy engine
    """
    settings = settings or get_settings()
    url = settings.database_url

    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            # Single shared connection so every session sees the same database
            engine = create_engine(
                url,
                echo=settings.database_echo,
                connect_args=connect_args,
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(
                url,
                echo=settings.database_echo,
                connect_args=connect_args,
                pool_pre_ping=True,
            )
        event.listen(engine, "connect", _configure_sqlite)
    else:
        # Non-SQLite (e.g., PostgreSQL): honor pool settings for production use
        engine = create_engine(
            url,
            echo=settings.database_echo,
            pool_pre_ping=True,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_recycle=settings.database_pool_recycle,
            pool_timeout=settings.database_pool_timeout,
        )

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build the session factory shared by the services.

    Sessions keep loaded state after commit so snapshots taken inside a
    transaction stay readable.
    """
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Initialize the database by creating all tables.

    Note:
        This creates tables directly without migrations.
    """
    Base.metadata.create_all(bind=engine)


def check_database_health(engine: Engine) -> bool:
    """Check if the database is accessible.

    Returns:
        bool: True if database is healthy, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False


def get_table_names(engine: Engine) -> list[str]:
    """Get list of all table names in the database.

    Returns:
        list[str]: List of table names
    """
    inspector = inspect(engine)
    return inspector.get_table_names()
