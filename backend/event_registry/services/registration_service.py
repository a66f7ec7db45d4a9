"""
Registration ledger: admits or rejects registrations and handles cancellations.

Both operations run as one unit of work under the event row lock (see
db/transaction.py). Occupancy is re-counted after the lock is granted; a count
taken earlier could already be stale and is never used for the decision.

Checks for `register_for_event`, in order:
  1. user exists                      -> UserNotFoundError
  2. event exists                     -> EventNotFoundError
  3. event starts strictly after now  -> EventInPastError
  4. occupancy < capacity             -> EventFullError
  5. no live registration for pair    -> AlreadyRegisteredError
"""

import time
import uuid
from uuid import UUID

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from event_registry.core.clock import is_past, utcnow
from event_registry.core.exceptions import (
    AlreadyRegisteredError,
    EventFullError,
    EventInPastError,
    EventNotFoundError,
    NotRegisteredError,
    RegistrationError,
    UserNotFoundError,
)
from event_registry.core.logging import get_logger
from event_registry.core.metrics import (
    record_cancellation,
    record_registration_attempt,
    registration_latency,
)
from event_registry.db.transaction import atomic, lock_event
from event_registry.models.registration import Registration
from event_registry.models.user import User

logger = get_logger(__name__)


async def count_registrations(db: AsyncSession, event_id: UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(Registration).where(Registration.event_id == event_id)
    )
    return result.scalar_one()


async def register_for_event(db: AsyncSession, event_id: UUID, user_id: UUID) -> Registration:
    """
    Register `user_id` for `event_id`.

    Returns the new Registration. Raises a RegistrationError subclass on any
    rejection; nothing is written in that case.
    """
    start = time.perf_counter()
    try:
        async with atomic(db, conflict=AlreadyRegisteredError):
            if await db.get(User, user_id) is None:
                raise UserNotFoundError(f"User {user_id} not found")

            event = await lock_event(db, event_id)
            if event is None:
                raise EventNotFoundError(f"Event {event_id} not found")

            now = utcnow()
            if is_past(event.event_datetime, now):
                raise EventInPastError()

            occupancy = await count_registrations(db, event_id)
            if occupancy >= event.capacity:
                raise EventFullError(occupancy=occupancy, capacity=event.capacity)

            existing = await db.execute(
                select(Registration.id).where(
                    Registration.event_id == event_id,
                    Registration.user_id == user_id,
                )
            )
            if existing.first() is not None:
                raise AlreadyRegisteredError()

            registration = Registration(
                id=uuid.uuid4(),
                event_id=event_id,
                user_id=user_id,
                registered_at=now,
            )
            db.add(registration)
            await db.flush()
    except RegistrationError as e:
        record_registration_attempt(e.code)
        logger.info(
            "registration_rejected",
            event_id=str(event_id),
            user_id=str(user_id),
            reason=e.code,
            **e.context,
        )
        raise
    finally:
        registration_latency.observe(time.perf_counter() - start)

    record_registration_attempt("created")
    logger.info(
        "registration_created",
        registration_id=str(registration.id),
        event_id=str(event_id),
        user_id=str(user_id),
        occupancy=occupancy + 1,
        capacity=event.capacity,
    )
    return registration


async def cancel_registration(db: AsyncSession, event_id: UUID, user_id: UUID) -> None:
    """
    Delete the live registration for (event_id, user_id).

    Takes the same event lock as registration so a cancellation and a capacity
    check for that event never interleave. A second cancellation of the same
    pair finds no row and raises NotRegisteredError.
    """
    try:
        async with atomic(db):
            await lock_event(db, event_id)
            result = await db.execute(
                delete(Registration)
                .where(
                    Registration.event_id == event_id,
                    Registration.user_id == user_id,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotRegisteredError()
    except RegistrationError as e:
        record_cancellation(e.code)
        logger.info(
            "cancellation_rejected",
            event_id=str(event_id),
            user_id=str(user_id),
            reason=e.code,
        )
        raise

    record_cancellation("cancelled")
    logger.info("registration_cancelled", event_id=str(event_id), user_id=str(user_id))
