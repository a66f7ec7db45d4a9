from event_registry.schemas.user import UserCreate, UserCreatedResponse
from event_registry.schemas.event import (
    EventCreate, EventCreatedResponse, EventResponse,
    EventDetailResponse, AttendeeResponse, EventStatsResponse,
)
from event_registry.schemas.registration import (
    RegistrationRequest, RegistrationResponse, CancellationResponse, ErrorResponse,
)

__all__ = [
    "UserCreate", "UserCreatedResponse",
    "EventCreate", "EventCreatedResponse", "EventResponse",
    "EventDetailResponse", "AttendeeResponse", "EventStatsResponse",
    "RegistrationRequest", "RegistrationResponse", "CancellationResponse", "ErrorResponse",
]
