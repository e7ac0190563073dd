"""
Database engine and session management.

One session per request via the get_db_session dependency. Batch jobs open
their own session from SessionLocal.
"""

import logging
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from clubhouse.config import settings
from clubhouse.db_base import Base

logger = logging.getLogger(__name__)


def enable_sqlite_savepoints(engine) -> None:
    """
    Let SQLAlchemy drive BEGIN on pysqlite connections.

    Without this the driver starts transactions on its own and SAVEPOINTs
    (Session.begin_nested) do not isolate anything.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_db_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=settings.DATABASE_ECHO, **kwargs)
        enable_sqlite_savepoints(engine)
        return engine
    return create_engine(url, echo=settings.DATABASE_ECHO, pool_pre_ping=True)


engine = create_db_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create any missing tables. Used on first boot by the bootstrap job."""
    import clubhouse.models  # noqa: F401

    Base.metadata.create_all(bind=bind if bind is not None else engine)
    logger.info("Database tables ensured")


def get_db_session() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    session = SessionLocal()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

