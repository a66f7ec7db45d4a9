"""
Event endpoints. The upcoming listing is cached in Redis.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_registry.db.session import get_db
from event_registry.schemas.event import (
    EventCreate,
    EventCreatedResponse,
    EventDetailResponse,
    EventResponse,
    EventStatsResponse,
)
from event_registry.services.cache_service import UpcomingEventsCache, get_cache
from event_registry.services.event_service import (
    create_event,
    get_event_detail,
    get_event_stats,
    list_upcoming_events,
)

router = APIRouter(prefix="/events", tags=["Events"])


@router.post("", response_model=EventCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    db: AsyncSession = Depends(get_db),
    cache: UpcomingEventsCache = Depends(get_cache),
):
    event = await create_event(db, event_data)
    # New event may belong in the upcoming list
    await cache.invalidate()
    return EventCreatedResponse(id=event.id)


# Declared before /{event_id} so "upcoming" is never parsed as an id
@router.get("/upcoming", response_model=list[EventResponse])
async def list_upcoming_events_endpoint(
    db: AsyncSession = Depends(get_db),
    cache: UpcomingEventsCache = Depends(get_cache),
):
    """Events after now, ordered by datetime then location."""
    return await list_upcoming_events(db, cache)


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event_endpoint(event_id: UUID, db: AsyncSession = Depends(get_db)):
    """Event fields with attendees in registration order. Never cached."""
    return await get_event_detail(db, event_id)


@router.get("/{event_id}/stats", response_model=EventStatsResponse)
async def get_event_stats_endpoint(event_id: UUID, db: AsyncSession = Depends(get_db)):
    return await get_event_stats(db, event_id)
