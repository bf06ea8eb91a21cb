"""Maps booking-core exceptions onto HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.domain.errors import (
    BookingError,
    BookingNotFound,
    DriverNotFound,
    DriverUnavailable,
    DuplicateBooking,
    Forbidden,
    InvalidInput,
    InvalidTransition,
    StoreUnavailable,
    UnknownAction,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[BookingError], int] = {
    InvalidInput: 422,
    DriverNotFound: 404,
    BookingNotFound: 404,
    DriverUnavailable: 409,
    DuplicateBooking: 409,
    InvalidTransition: 409,
    UnknownAction: 400,
    Forbidden: 403,
    StoreUnavailable: 503,
}


def status_for(exc: BookingError) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 400


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
        status = status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info(
                "%s %s rejected (%s): %s",
                request.method,
                request.url.path,
                exc.code,
                exc,
            )
        return JSONResponse(
            status_code=status, content={"detail": exc.message, "code": exc.code}
        )
