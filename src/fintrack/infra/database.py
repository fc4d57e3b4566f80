"""Database engine and unit-of-work helpers."""

from __future__ import annotations

from contextlib import AbstractContextManager, contextmanager
from typing import Callable, Iterator, Tuple

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig

SessionFactory = Callable[[], AbstractContextManager[Session]]


def _apply_sqlite_pragmas(engine: Engine, pragmas: dict[str, str]) -> None:
    """Run ``PRAGMA`` statements on every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection, _record) -> None:  # pragma: no cover - driver hook
        cursor = dbapi_connection.cursor()
        try:
            for key, value in pragmas.items():
                cursor.execute(f"PRAGMA {key}={value}")
        finally:
            cursor.close()


def create_db_engine(config: BaseConfig) -> Engine:
    """Create SQLModel engine from configuration."""

    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    if config.is_sqlite:
        _apply_sqlite_pragmas(engine, config.SQLITE_PRAGMAS)
    return engine


def init_database(engine: Engine) -> None:
    """Initialize database schema."""
    # Import all models to ensure they're registered
    from .. import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


@contextmanager
def session_scope(engine: Engine) -> Iterator[Session]:
    """Provide a transactional scope around operations."""

    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine: Engine) -> SessionFactory:
    """Return a zero-argument callable producing :func:`session_scope` contexts."""

    def factory() -> AbstractContextManager[Session]:
        return session_scope(engine)

    return factory


def bootstrap_database(config: BaseConfig | None = None) -> Tuple[Engine, SessionFactory]:
    """Convenience bootstrap for engine + session_factory with schema init.

    Used by the app factory and CLI so both share engine options and session
    configuration. Returns (engine, session_factory).
    """

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    init_database(engine)
    return engine, create_session_factory(engine)
