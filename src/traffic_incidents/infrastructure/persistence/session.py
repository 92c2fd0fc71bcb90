"""
Engine and session factory for the incident store.

PostgreSQL (``postgresql+psycopg2://...``) in production; SQLite for local
runs and tests.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ...config import Settings

# Base class for ORM models
Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    """Create the engine and its connection pool from settings."""
    url = settings.database_url
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            # every session must see the same in-memory database
            kwargs["poolclass"] = StaticPool
            return create_engine(url, echo=settings.database_echo, **kwargs)
        engine = create_engine(url, echo=settings.database_echo, **kwargs)
        _begin_immediate(engine)
        return engine

    return create_engine(url, echo=settings.database_echo, pool_pre_ping=True, pool_size=settings.database_pool_size)


def _begin_immediate(engine: Engine) -> None:
    """Take the SQLite write lock when a transaction starts, not on its first write.

    Concurrent writers then wait on the busy timeout instead of failing with
    "database is locked" when two read locks try to upgrade at once.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def build_session_factory(engine: Engine) -> sessionmaker:
    """Return a session factory bound to ``engine``."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """Create the schema if it does not exist yet."""
    from . import models  # noqa: F401  registers the tables on Base

    Base.metadata.create_all(engine)
