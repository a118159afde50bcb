"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 5,
    "pool_recycle": 300,
    "pool_pre_ping": True,
}


def _is_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite")


def enable_sqlite_transaction_control(target: Engine, *, begin_statement: str = "BEGIN") -> Engine:
    """
    Let SQLAlchemy own transaction boundaries on pysqlite.

    The driver otherwise defers BEGIN until the first DML statement, which
    breaks SAVEPOINT semantics. ``BEGIN IMMEDIATE`` takes the write lock up
    front so concurrent writers queue on the busy timeout instead of failing.
    """

    @event.listens_for(target, "connect")
    def _disable_pysqlite_autobegin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql(begin_statement)

    return target


def build_engine(db_url: str, *, echo: bool = False) -> Engine:
    """Create an engine with pool settings appropriate for the backend."""

    if _is_sqlite(db_url):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if db_url in {"sqlite://", "sqlite:///:memory:"}:
            kwargs["poolclass"] = StaticPool
        return enable_sqlite_transaction_control(create_engine(db_url, echo=echo, **kwargs))

    return create_engine(
        db_url,
        echo=echo,
        connect_args={"connect_timeout": 5, "application_name": "massava_api"},
        **_DEFAULT_POOL_KWARGS,
    )


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
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
