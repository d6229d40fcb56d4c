"""Database session management."""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from app.core.config import settings

DATABASE_URL = settings.get_database_url()


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """Turn on ON DELETE CASCADE enforcement for SQLite connections."""

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str) -> Engine:
    """Create the engine, sizing the pool for server databases only."""
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(url, connect_args={"check_same_thread": False}, echo=False)
        enable_sqlite_foreign_keys(sqlite_engine)
        return sqlite_engine

    return create_engine(
        url,
        pool_pre_ping=True,
        echo=False,
        pool_size=settings.DB_POOL_SIZE,        # Configurable via DB_POOL_SIZE env var
        max_overflow=settings.DB_MAX_OVERFLOW    # Configurable via DB_MAX_OVERFLOW env var
    )


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
