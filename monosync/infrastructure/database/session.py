"""Database session management for the ledger store"""

from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from monosync.config import get_settings
from monosync.infrastructure.database.models import Base


def build_engine(database_url: str) -> Engine:
    """Create an engine; pool sizing only applies to server databases"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=5,
        pool_recycle=3600,
    )


def init_ledger(engine: Engine) -> None:
    """Create ledger tables that do not exist yet"""
    Base.metadata.create_all(bind=engine)


@lru_cache
def get_session_factory() -> sessionmaker:
    engine = build_engine(get_settings().database_url)
    init_ledger(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Dependency injection for database sessions"""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
