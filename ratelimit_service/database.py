"""
Database setup for the counter store.
"""

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models.records import Base

logger = logging.getLogger(__name__)


def _use_immediate_transactions(engine: Engine) -> None:
    """Make SQLite take the write lock at BEGIN.

    Deferred transactions that read before writing can fail with
    'database is locked' instead of waiting; BEGIN IMMEDIATE makes concurrent
    writers queue on the busy timeout.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_database_engine(database_url: str, echo: bool = False, sqlite_timeout: float = 30.0) -> Engine:
    """
    Create the engine used for counter storage.

    Args:
        database_url: SQLAlchemy URL (PostgreSQL in production, SQLite for local use)
        echo: Whether to log every SQL statement
        sqlite_timeout: Seconds a SQLite connection waits for the write lock

    Returns:
        Configured Engine
    """
    is_sqlite = database_url.startswith("sqlite")
    connect_args = {"timeout": sqlite_timeout, "check_same_thread": False} if is_sqlite else {}

    engine = create_engine(database_url, echo=echo, future=True, connect_args=connect_args)
    if is_sqlite:
        _use_immediate_transactions(engine)

    logger.info(f"Counter store engine created for dialect '{engine.dialect.name}'")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory for the counter store."""
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


def init_rate_limit_table(engine: Engine) -> None:
    """Create the counter table and its indexes if they do not exist."""
    Base.metadata.create_all(engine)
    logger.info("Rate limit counter table ready")
