"""
Event service: creation and the read-only query surface.

None of these paths take the event lock. Detail and stats are plain reads at
the store's default consistency; they may be a moment behind an in-flight
registration, which is fine for display.
"""

from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from event_registry.core.clock import utcnow
from event_registry.core.exceptions import EventNotFoundError
from event_registry.core.logging import get_logger
from event_registry.db.transaction import atomic
from event_registry.models.event import Event
from event_registry.models.registration import Registration
from event_registry.models.user import User
from event_registry.schemas.event import (
    AttendeeResponse,
    EventCreate,
    EventDetailResponse,
    EventResponse,
    EventStatsResponse,
)
from event_registry.services.cache_service import UpcomingEventsCache
from event_registry.services.registration_service import count_registrations

logger = get_logger(__name__)


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    """Create an event. Past datetimes are accepted; registration rejects them."""
    event = Event(
        title=event_data.title,
        event_datetime=event_data.event_datetime,
        location=event_data.location,
        capacity=event_data.capacity,
    )
    async with atomic(db):
        db.add(event)
        await db.flush()

    logger.info("event_created", event_id=str(event.id), title=event.title, capacity=event.capacity)
    return event


async def get_event(db: AsyncSession, event_id: UUID) -> Event:
    event = await db.get(Event, event_id)
    if event is None:
        raise EventNotFoundError(f"Event {event_id} not found")
    return event


async def get_event_detail(db: AsyncSession, event_id: UUID) -> EventDetailResponse:
    """Event fields plus attendees ordered by registration time."""
    event = await get_event(db, event_id)

    result = await db.execute(
        select(User.id, User.name, User.email, Registration.registered_at)
        .join(Registration, Registration.user_id == User.id)
        .where(Registration.event_id == event_id)
        .order_by(Registration.registered_at.asc(), Registration.id.asc())
    )
    attendees = [
        AttendeeResponse(id=row.id, name=row.name, email=row.email, registered_at=row.registered_at)
        for row in result
    ]

    return EventDetailResponse(
        **EventResponse.model_validate(event).model_dump(),
        registered_users=attendees,
    )


async def list_upcoming_events(db: AsyncSession, cache: UpcomingEventsCache) -> list[EventResponse]:
    """
    Events scheduled after now, by datetime ascending then location ascending.
    Served from Redis when cached.
    """
    now = utcnow()

    cached = await cache.get_upcoming(now)
    if cached is not None:
        logger.info("upcoming_events_cache_hit", count=len(cached))
        return [EventResponse.model_validate(item) for item in cached]

    result = await db.execute(
        select(Event)
        .where(Event.event_datetime > now)
        .order_by(Event.event_datetime.asc(), Event.location.asc())
    )
    events = [EventResponse.model_validate(e) for e in result.scalars().all()]

    await cache.set_upcoming([e.model_dump(mode="json") for e in events])
    return events


def format_percentage(total: int, capacity: int) -> str:
    """`total / capacity` as a percentage string with two decimals, e.g. "66.67%"."""
    value = (Decimal(total) * 100 / Decimal(capacity)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{value}%"


async def get_event_stats(db: AsyncSession, event_id: UUID) -> EventStatsResponse:
    event = await get_event(db, event_id)
    total = await count_registrations(db, event_id)

    return EventStatsResponse(
        event_id=event.id,
        total_registrations=total,
        remaining_capacity=event.capacity - total,
        percentage_used=format_percentage(total, event.capacity),
    )
