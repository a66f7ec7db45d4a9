"""
Pydantic schemas for registration request/response validation.
"""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel


class RegistrationRequest(BaseModel):
    user_id: UUID


class RegistrationResponse(BaseModel):
    message: str = "Registered successfully"
    id: UUID
    event_id: UUID
    user_id: UUID
    registered_at: datetime

    model_config = {"from_attributes": True}


class CancellationResponse(BaseModel):
    message: str = "Registration cancelled successfully"
    event_id: UUID
    user_id: UUID


class ErrorResponse(BaseModel):
    error: str
    detail: str
