"""Store-backed half of the create-booking conflict check."""

from __future__ import annotations

from src.domain.checks import TripRequest
from src.domain.errors import DriverUnavailable, DuplicateBooking
from src.infrastructure.repositories import BookingRepository
from src.services.availability import AvailabilityGuard


class ConflictDetector:
    def __init__(self, guard: AvailabilityGuard, bookings: BookingRepository):
        self.guard = guard
        self.bookings = bookings

    async def check_create(
        self, user_id: int, driver_id: int, trip: TripRequest
    ) -> None:
        """
        Raise if the request must not become a booking.

        Order matters: the duplicate lookup runs before the availability
        check so that re-sending an identical trip reports
        ``DuplicateBooking`` rather than the driver being taken (by the
        very booking it duplicates).
        """
        bookable = await self.guard.is_bookable(driver_id)
        await self.check_duplicate(user_id, trip)
        if not bookable:
            raise DriverUnavailable(f"Driver {driver_id} is not available right now")

    async def check_duplicate(self, user_id: int, trip: TripRequest) -> None:
        """
        Raise ``DuplicateBooking`` if the user already holds this trip.

        Only a read: two racing creates can both pass it, and the partial
        unique index ``uq_bookings_live_trip`` turns the second insert away.
        """
        duplicate = await self.bookings.find_live_duplicate(
            user_id=user_id,
            pickup_location=trip.pickup_location,
            drop_location=trip.drop_location,
            trip_start=trip.trip_start,
        )
        if duplicate is not None:
            raise DuplicateBooking(
                f"Duplicate booking detected (booking {duplicate.id}). "
                "You have already booked this trip."
            )
