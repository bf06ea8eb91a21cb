"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Booking``: enforces valid lifecycle transitions
  (Pending -> Confirmed -> Completed, with Cancelled / Rejected exits).
- ``Driver.is_bookable`` encapsulates the "may be targeted by a new
  booking" rule used by the availability guard.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import (
    BOOKING_TRANSITIONS,
    DRIVER_RELEASING_STATUSES,
    ActorRole,
    ApprovalStatus,
    BookingAction,
    BookingStatus,
    DriverAvailability,
)
from .errors import Forbidden, InvalidTransition, UnknownAction


def parse_action(raw: str | BookingAction) -> BookingAction:
    """Map a caller-supplied action string onto ``BookingAction``."""
    if isinstance(raw, BookingAction):
        return raw
    try:
        return BookingAction((raw or "").strip().lower())
    except ValueError:
        raise UnknownAction(f"Invalid action: {raw!r}") from None


# ── Value Object ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Actor:
    """Who is calling, as supplied by the identity layer."""

    id: int
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Booking:
    id: Optional[int] = None
    user_id: int = 0
    driver_id: Optional[int] = None
    pickup_location: str = ""
    drop_location: str = ""
    trip_start: Optional[datetime] = None
    trip_end: Optional[datetime] = None
    status: BookingStatus = BookingStatus.PENDING
    amount: float = 0.0
    special_requests: Optional[str] = None

    @property
    def releases_driver(self) -> bool:
        return self.status in DRIVER_RELEASING_STATUSES

    def is_party(self, actor: Actor) -> bool:
        if actor.is_admin:
            return True
        if actor.role == ActorRole.CUSTOMER:
            return actor.id == self.user_id
        if actor.role == ActorRole.DRIVER:
            return self.driver_id is not None and actor.id == self.driver_id
        return False

    def apply(self, action: BookingAction, actor: Actor) -> BookingStatus:
        """
        Apply *action* on behalf of *actor* and return the new status.

        Raises ``Forbidden`` when the actor may not act on this booking and
        ``InvalidTransition`` when the current status has no edge for the
        action.  The entity is left untouched on failure.
        """
        if not self.is_party(actor):
            raise Forbidden(f"Booking {self.id} does not belong to this {actor.role.value}")

        edges = BOOKING_TRANSITIONS[action]
        if not any(actor.role in roles for _, roles in edges.values()):
            raise Forbidden(f"A {actor.role.value} cannot {action.value} a booking")

        edge = edges.get(self.status)
        if edge is None:
            raise InvalidTransition(
                f"Cannot {action.value} a booking in status {self.status.value}"
            )

        new_status, roles = edge
        if actor.role not in roles:
            raise Forbidden(
                f"A {actor.role.value} cannot {action.value} a "
                f"{self.status.value} booking"
            )

        self.status = new_status
        return new_status


@dataclass
class Driver:
    id: Optional[int] = None
    name: str = ""
    salary_per_day: int = 500
    rating: float = 0.0
    availability: DriverAvailability = DriverAvailability.AVAILABLE
    approval_status: ApprovalStatus = ApprovalStatus.PENDING

    @property
    def is_bookable(self) -> bool:
        return (
            self.approval_status == ApprovalStatus.APPROVED
            and self.availability == DriverAvailability.AVAILABLE
        )
