"""
Registration and cancellation endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from event_registry.db.session import get_db
from event_registry.schemas.registration import (
    CancellationResponse,
    ErrorResponse,
    RegistrationRequest,
    RegistrationResponse,
)
from event_registry.services.registration_service import cancel_registration, register_for_event

router = APIRouter(prefix="/events", tags=["Registrations"])


@router.post(
    "/{event_id}/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "event_in_past"},
        404: {"model": ErrorResponse, "description": "user_not_found / event_not_found"},
        409: {"model": ErrorResponse, "description": "event_full / already_registered"},
        503: {"model": ErrorResponse, "description": "busy / store_unavailable (retryable)"},
    },
)
async def register_endpoint(
    event_id: UUID,
    body: RegistrationRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a user for an event.

    The capacity check and insert run under a per-event lock, so an event
    never admits more registrations than its capacity.
    """
    registration = await register_for_event(db, event_id, body.user_id)
    return RegistrationResponse.model_validate(registration)


@router.delete(
    "/{event_id}/cancel",
    response_model=CancellationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "not_registered"},
        503: {"model": ErrorResponse, "description": "busy / store_unavailable (retryable)"},
    },
)
async def cancel_endpoint(
    event_id: UUID,
    body: RegistrationRequest,
    db: AsyncSession = Depends(get_db),
):
    """Cancel a registration and free its slot."""
    await cancel_registration(db, event_id, body.user_id)
    return CancellationResponse(event_id=event_id, user_id=body.user_id)
