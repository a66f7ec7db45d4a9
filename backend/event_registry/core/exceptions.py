"""
Registration error taxonomy.

Every rejection the registration core can produce is a subclass of
`RegistrationError`. Each carries a stable machine-readable `code`, the HTTP
status it maps to, and whether the caller may retry the same request.

Only `StoreBusyError` and `StoreUnavailableError` are retryable. Everything
else is a definitive answer for that request.
"""

from typing import Any, Optional


class RegistrationError(Exception):
    code: str = "registration_error"
    status_code: int = 400
    retryable: bool = False
    default_message: str = "Registration request rejected"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class NotFoundError(RegistrationError):
    status_code = 404


class UserNotFoundError(NotFoundError):
    code = "user_not_found"
    default_message = "User not found"


class EventNotFoundError(NotFoundError):
    code = "event_not_found"
    default_message = "Event not found"


class EventInPastError(RegistrationError):
    code = "event_in_past"
    status_code = 400
    default_message = "Cannot register for past events"


class EventFullError(RegistrationError):
    code = "event_full"
    status_code = 409
    default_message = "Event is full"


class AlreadyRegisteredError(RegistrationError):
    code = "already_registered"
    status_code = 409
    default_message = "Already registered"


class NotRegisteredError(RegistrationError):
    code = "not_registered"
    status_code = 400
    default_message = "User is not registered for this event"


class StoreBusyError(RegistrationError):
    """The event lock or a pooled connection could not be obtained in time."""

    code = "busy"
    status_code = 503
    retryable = True
    default_message = "Too many concurrent requests for this event. Please retry."


class StoreUnavailableError(RegistrationError):
    """The store failed for a reason unrelated to the request itself."""

    code = "store_unavailable"
    status_code = 503
    retryable = True
    default_message = "Storage is temporarily unavailable. Please retry."
