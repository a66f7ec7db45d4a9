"""
Database engine and session lifecycle.

The engine (and its connection pool) is owned by a `Database` instance that
the application creates at startup and disposes at shutdown. Request handlers
never touch the engine directly: they receive a scoped `AsyncSession` from
`get_db`, which is closed on every exit path.

Dialect notes
=============

PostgreSQL (production):
  Runs at READ COMMITTED. The registration unit of work locks the event row
  with SELECT ... FOR UPDATE and only then counts registrations. Under READ
  COMMITTED each statement takes a fresh snapshot, so the count issued after
  the lock is granted sees every registration committed by the previous lock
  holder. REPEATABLE READ would pin the snapshot to the moment the lock was
  *requested*, and the count would be stale.

SQLite (tests and local runs only):
  No row locks. Units of work opened by `atomic` start with BEGIN IMMEDIATE,
  which takes the database write lock up front, so check-then-insert sequences
  are fully serialized. Plain reads (detail, stats, upcoming) autobegin with a
  deferred BEGIN and only take a shared lock, so they are not queued behind a
  writer. The driver busy timeout is the bounded wait.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from event_registry.core.config import Settings
from event_registry.core.logging import get_logger
from event_registry.db.base import Base
import event_registry.models  # noqa: F401 - register tables on Base.metadata

logger = get_logger(__name__)

# connection execution option read by the SQLite begin hook
SQLITE_BEGIN_MODE = "sqlite_begin_mode"


def _install_sqlite_hooks(engine) -> None:
    """Hand transaction control to SQLAlchemy; the begin mode comes from SQLITE_BEGIN_MODE."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # disable the driver's implicit BEGIN so ours is the only one issued
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_MODE, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")


class Database:
    """Owns the async engine and session factory for one application instance."""

    def __init__(
        self,
        url: str,
        *,
        lock_timeout_ms: int = 5000,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
        echo: bool = False,
    ):
        self.url = make_url(url)
        self.lock_timeout_ms = lock_timeout_ms

        if self.url.get_backend_name() == "sqlite":
            self.engine = create_async_engine(
                self.url,
                echo=echo,
                poolclass=NullPool,
                connect_args={"timeout": lock_timeout_ms / 1000},
            )
            _install_sqlite_hooks(self.engine)
        else:
            self.engine = create_async_engine(
                self.url,
                echo=echo,
                isolation_level="READ COMMITTED",
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=True,
            )

        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.DATABASE_URL,
            lock_timeout_ms=settings.DB_LOCK_TIMEOUT_MS,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            echo=settings.DEBUG,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def session(self) -> AsyncSession:
        session = self.sessionmaker()
        session.info["lock_timeout_ms"] = self.lock_timeout_ms
        return session

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_created", dialect=self.dialect)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("database_disposed", dialect=self.dialect)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, always closed."""
    database: Database = request.app.state.db
    async with database.session() as session:
        yield session
