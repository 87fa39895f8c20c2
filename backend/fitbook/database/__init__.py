"""
Database engine, session factory, and metadata shared across the engine.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from fitbook.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
}


def configure_sqlite_engine(engine: Engine) -> Engine:
    """
    Let SQLAlchemy own BEGIN/SAVEPOINT on pysqlite connections.

    The pysqlite driver starts transactions lazily and silently breaks
    SAVEPOINT handling; disabling its own transaction control and emitting
    BEGIN from the engine keeps nested transactions working.
    """

    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _do_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(db_url: str, *, echo: bool = False, **overrides: Any) -> Engine:
    """Create an engine for ``db_url`` with dialect-appropriate settings."""
    if db_url.startswith("sqlite"):
        connect_args = overrides.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        sqlite_engine = create_engine(db_url, echo=echo, connect_args=connect_args, **overrides)
        return configure_sqlite_engine(sqlite_engine)

    kwargs = dict(_DEFAULT_POOL_KWARGS)
    kwargs.update(overrides)
    return create_engine(db_url, echo=echo, **kwargs)


engine: Engine = build_engine(settings.database_url, echo=settings.database_echo)


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "configure_sqlite_engine",
    "engine",
    "get_db",
]
