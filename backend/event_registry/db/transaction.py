"""
Units of work and per-event locking.

CONCURRENCY STRATEGY: Pessimistic per-event row lock
=====================================================

Problem:
  Two requests try to take the last slot of an event simultaneously.
  Both COUNT the registrations, both see occupancy < capacity, both INSERT.
  Result: Overbooking.

Solution:
  Every capacity-affecting operation (register, cancel) runs as one
  transaction that first locks the event row:

  1. SELECT ... FROM events WHERE id = :event_id FOR UPDATE
  2. COUNT registrations / check for an existing one   (fresh read, under the lock)
  3. INSERT or DELETE the registration
  4. COMMIT (releases the lock)

  Requests for different events lock different rows and never contend.
  Requests for the same event queue on the row lock in the database, so the
  guarantee holds across any number of server processes.

  The wait is bounded (SET LOCAL lock_timeout). A request that cannot get
  the lock in time fails with StoreBusyError instead of hanging.

  The UNIQUE (event_id, user_id) constraint stays as the last line of defence
  against duplicates; a violation is reported as AlreadyRegisteredError.

Why not optimistic locking with a version column:
  Occupancy is derived (COUNT of rows), not a denormalized counter, so there is
  no single column to compare-and-swap. Contention is per event and short, so
  queueing on a row lock is cheap.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Type
from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession

from event_registry.core.exceptions import (
    RegistrationError,
    StoreBusyError,
    StoreUnavailableError,
)
from event_registry.core.logging import get_logger
from event_registry.core.metrics import record_store_fault
from event_registry.db.session import SQLITE_BEGIN_MODE
from event_registry.models.event import Event

logger = get_logger(__name__)

# lock_not_available, serialization_failure, deadlock_detected
CONTENTION_SQLSTATES = {"55P03", "40001", "40P01"}
CONTENTION_MESSAGES = ("lock timeout", "database is locked", "could not serialize", "deadlock detected")


def _sqlstate(error: sa_exc.DBAPIError) -> Optional[str]:
    orig = error.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return code
    return None


def classify_store_error(
    error: Exception,
    conflict: Optional[Type[RegistrationError]] = None,
) -> RegistrationError:
    """
    Map a store-layer exception onto the registration error taxonomy.

    `conflict` is the error to report for a unique-constraint violation; when
    it is not given, an integrity error counts as a store failure.
    """
    if isinstance(error, sa_exc.TimeoutError):
        # connection pool exhausted for longer than DB_POOL_TIMEOUT
        return StoreBusyError()

    if isinstance(error, sa_exc.IntegrityError) and conflict is not None:
        return conflict()

    if isinstance(error, sa_exc.DBAPIError):
        message = str(error.orig).lower()
        if _sqlstate(error) in CONTENTION_SQLSTATES or any(m in message for m in CONTENTION_MESSAGES):
            return StoreBusyError()

    return StoreUnavailableError()


async def _begin_for_write(db: AsyncSession) -> None:
    """SQLite takes the write lock up front; PostgreSQL caps row-lock waits at lock_timeout_ms."""
    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        await db.connection(execution_options={SQLITE_BEGIN_MODE: "IMMEDIATE"})
    elif dialect == "postgresql":
        timeout_ms = int(db.info.get("lock_timeout_ms", 5000))
        # SET does not take bind parameters; the value is an int from settings
        await db.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))


@asynccontextmanager
async def atomic(
    db: AsyncSession,
    conflict: Optional[Type[RegistrationError]] = None,
) -> AsyncIterator[AsyncSession]:
    """
    Run the enclosed block as a single store transaction.

    Commits on normal exit, rolls back on any exception. Store faults leave
    this block only as StoreBusyError / StoreUnavailableError (or `conflict`
    for unique violations), with the original exception chained.
    """
    try:
        async with db.begin():
            await _begin_for_write(db)
            yield db
    except RegistrationError:
        raise
    except (sa_exc.SQLAlchemyError, OSError) as e:
        translated = classify_store_error(e, conflict)
        if translated.retryable:
            record_store_fault(translated.code)
            if isinstance(translated, StoreBusyError):
                logger.warning("store_busy", error=str(e), error_type=type(e).__name__)
            else:
                logger.error("store_unavailable", error=str(e), error_type=type(e).__name__)
        raise translated from e


async def lock_event(db: AsyncSession, event_id: UUID) -> Optional[Event]:
    """
    Read the event row with FOR UPDATE, holding it until the transaction ends.

    Must be called inside `atomic`. Returns None when the event does not exist.
    """
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()
