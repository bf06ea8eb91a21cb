"""Domain enumerations and state-transition rules."""

import enum


class BookingStatus(str, enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    REJECTED = "Rejected"


class DriverAvailability(str, enum.Enum):
    AVAILABLE = "Available"
    NOT_AVAILABLE = "Not Available"


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ActorRole(str, enum.Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"


class BookingAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    CANCEL = "cancel"
    COMPLETE = "complete"


class BookingOrdering(str, enum.Enum):
    TRIP_START_DESC = "trip_start_desc"
    TRIP_START_ASC = "trip_start_asc"
    CREATED_DESC = "created_desc"


# A booking holding its driver
ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

TERMINAL_STATUSES = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.REJECTED}
)

# Entering one of these hands the driver back to the pool.  Rejected is
# included: a Pending booking holds its driver, so every exit from Pending
# must release it.
DRIVER_RELEASING_STATUSES = TERMINAL_STATUSES


# State machine: action -> {current status -> (next status, roles allowed)}
BOOKING_TRANSITIONS: dict[
    BookingAction, dict[BookingStatus, tuple[BookingStatus, frozenset[ActorRole]]]
] = {
    BookingAction.ACCEPT: {
        BookingStatus.PENDING: (
            BookingStatus.CONFIRMED,
            frozenset({ActorRole.DRIVER}),
        ),
    },
    BookingAction.REJECT: {
        BookingStatus.PENDING: (
            BookingStatus.REJECTED,
            frozenset({ActorRole.DRIVER}),
        ),
    },
    BookingAction.CANCEL: {
        BookingStatus.PENDING: (
            BookingStatus.CANCELLED,
            frozenset({ActorRole.CUSTOMER, ActorRole.ADMIN}),
        ),
        BookingStatus.CONFIRMED: (
            BookingStatus.CANCELLED,
            frozenset({ActorRole.CUSTOMER, ActorRole.DRIVER, ActorRole.ADMIN}),
        ),
    },
    BookingAction.COMPLETE: {
        BookingStatus.CONFIRMED: (
            BookingStatus.COMPLETED,
            frozenset({ActorRole.DRIVER, ActorRole.ADMIN}),
        ),
    },
}
