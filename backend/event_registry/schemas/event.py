"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from event_registry.core.clock import as_utc


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    event_datetime: datetime
    location: str = Field(..., min_length=1, max_length=255)
    capacity: int = Field(..., ge=1, le=1000)

    @field_validator("event_datetime")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventCreatedResponse(BaseModel):
    message: str = "Event created"
    id: UUID


class EventResponse(BaseModel):
    id: UUID
    title: str
    event_datetime: datetime
    location: str
    capacity: int

    model_config = {"from_attributes": True}

    @field_validator("event_datetime")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        # SQLite reads back naive values
        return as_utc(value)


class AttendeeResponse(BaseModel):
    id: UUID
    name: str
    email: str
    registered_at: datetime

    @field_validator("registered_at")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventDetailResponse(EventResponse):
    registered_users: list[AttendeeResponse]


class EventStatsResponse(BaseModel):
    event_id: UUID
    total_registrations: int
    remaining_capacity: int
    percentage_used: str
