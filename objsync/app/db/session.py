# objsync/app/db/session.py
"""
Async engine and session factory construction.

Production considerations:
- Uses asyncpg for PostgreSQL
- Uses aiosqlite for SQLite (local development fallback)
- Pool settings differ for SQLite (no pooling) vs PostgreSQL

Nothing here is created at import time. The object store builds one engine
at startup and disposes it at shutdown.

SQLite notes:
- pysqlite/aiosqlite emit their own BEGIN lazily, which breaks
  read-then-write transactions. We disable that and emit BEGIN ourselves
  from the "begin" event (SQLAlchemy's documented recipe).
- A session can ask for ``BEGIN IMMEDIATE`` through the ``sqlite_begin``
  execution option so that its first read already holds the write lock.
- Foreign keys are off by default in SQLite; cascades need them on.
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from objsync.app.core.config import Settings

SQLITE_BEGIN_OPTION = "sqlite_begin"


def _install_sqlite_hooks(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION)
        conn.exec_driver_sql(f"BEGIN {mode}" if mode else "BEGIN")


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    SQLite (local development):
    - NullPool, one connection per session
    - check_same_thread=False for async compatibility

    PostgreSQL (production):
    - AsyncAdaptedQueuePool with pre-ping and periodic recycling

    Returns:
        Configured AsyncEngine instance
    """
    if settings.is_sqlite:
        engine = create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )
        _install_sqlite_hooks(engine)
        return engine

    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        # Validate connection before checkout
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to ``engine``.

    expire_on_commit=False: rows stay readable after the transaction ends
    autoflush=False: explicit flush control, no surprise queries
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
