from event_registry.models.user import User
from event_registry.models.event import Event
from event_registry.models.registration import Registration

__all__ = ["User", "Event", "Registration"]
