"""
db/session.py

SQLAlchemy engine and session factory for the consumption store.
"""

from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import resolve_database_url


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class PoolSettings:
    echo: bool = False
    pool_recycle: int = 1800
    pool_size: int = 5
    max_overflow: int = 10

    @classmethod
    def from_env(cls) -> PoolSettings:
        return cls(
            echo=os.getenv("SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"},
            pool_recycle=_get_int_env("DB_POOL_RECYCLE", 1800),
            pool_size=_get_int_env("DB_POOL_SIZE", 5),
            max_overflow=_get_int_env("DB_MAX_OVERFLOW", 10),
        )


def create_db_engine(database_url: str | None = None, pool: PoolSettings | None = None) -> Engine:
    url = database_url or resolve_database_url()
    if not url.startswith("postgresql"):
        raise RuntimeError("Only PostgreSQL URLs are supported.")

    settings = pool or PoolSettings.from_env()
    return create_engine(
        url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_recycle=settings.pool_recycle,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def get_engine() -> Engine:
    """Return the shared engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        class_=Session,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def SessionLocal() -> Session:
    """Lazy session factory. Drop-in replacement for a sessionmaker() call."""
    global _session_factory
    if _session_factory is None:
        _session_factory = build_session_factory(get_engine())
    return _session_factory()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Yield a fresh session outside request handling and close it on exit."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def ping(session: Session) -> None:
    """Run SELECT 1; raises the driver error when the store is unreachable."""
    session.execute(text("SELECT 1"))
