"""
Booking-core error taxonomy.

Every rejection raised by the core derives from ``BookingError`` and carries
a stable ``code`` that the API layer renders next to the message.  All of
them are raised before (or instead of) a commit, so a rejected operation
never leaves a partial write behind.
"""

from __future__ import annotations


class BookingError(Exception):
    code = "booking_error"
    default_message = "Booking operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidInput(BookingError):
    code = "invalid_input"
    default_message = "Invalid booking request"


class DriverNotFound(BookingError):
    code = "driver_not_found"
    default_message = "Driver not found"


class BookingNotFound(BookingError):
    code = "booking_not_found"
    default_message = "Booking not found"


class DriverUnavailable(BookingError):
    code = "driver_unavailable"
    default_message = "Driver is not available right now"


class DuplicateBooking(BookingError):
    code = "duplicate_booking"
    default_message = "Duplicate booking detected. You have already booked this trip."


class InvalidTransition(BookingError):
    """Raised when a status change violates the state machine."""

    code = "invalid_transition"
    default_message = "Booking cannot move to the requested status"


class UnknownAction(BookingError):
    code = "unknown_action"
    default_message = "Invalid action"


class Forbidden(BookingError):
    code = "forbidden"
    default_message = "Actor is not allowed to perform this action"


class StoreUnavailable(BookingError):
    code = "store_unavailable"
    default_message = "Booking store is unavailable, please retry later"
