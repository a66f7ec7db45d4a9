"""
Exception handlers mapping the error taxonomy onto HTTP responses.

Every rejection has a stable `error` code so clients can branch on the cause
(full vs. duplicate vs. not found) without parsing messages.
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from event_registry.core.exceptions import RegistrationError
from event_registry.core.logging import get_logger
from event_registry.core.metrics import record_store_fault
from event_registry.db.transaction import classify_store_error

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = "1"


def error_response(exc: RegistrationError) -> JSONResponse:
    headers = {"Retry-After": RETRY_AFTER_SECONDS} if exc.retryable else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def registration_error_handler(request: Request, exc: RegistrationError) -> JSONResponse:
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"error": "invalid_input", "detail": jsonable_encoder(exc.errors())},
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store faults raised outside a unit of work (read paths)."""
    translated = classify_store_error(exc)
    record_store_fault(translated.code)
    logger.error("store_error_unhandled", error=str(exc), error_type=type(exc).__name__)
    return error_response(translated)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RegistrationError, registration_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
