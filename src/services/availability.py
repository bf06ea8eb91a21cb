"""
Availability Guard
==================

Single source of truth for "can driver D take a new booking right now" and
the only code path that writes ``drivers.availability``.  It always works
inside the caller's transaction, so the flag flips in the same commit as
the booking row that caused it.
"""

from __future__ import annotations

import logging

from src.domain.entities import Driver
from src.domain.enums import ApprovalStatus, DriverAvailability
from src.domain.errors import DriverNotFound, DriverUnavailable
from src.infrastructure.repositories import DriverRepository

logger = logging.getLogger(__name__)


class AvailabilityGuard:
    def __init__(self, drivers: DriverRepository):
        self.drivers = drivers

    async def get_driver(self, driver_id: int) -> Driver:
        row = await self.drivers.get_by_id(driver_id)
        if row is None:
            raise DriverNotFound(f"Driver {driver_id} not found")
        return Driver(
            id=row.id,
            name=row.name,
            salary_per_day=row.salary_per_day,
            rating=row.rating,
            availability=DriverAvailability(row.availability),
            approval_status=ApprovalStatus(row.approval_status),
        )

    async def is_bookable(self, driver_id: int) -> bool:
        return (await self.get_driver(driver_id)).is_bookable

    async def on_booking_created(self, driver_id: int) -> None:
        """
        Mark the driver Not Available.

        Written as "set Not Available where Available": if a concurrent
        booking already took the driver, no row changes and the caller's
        transaction is aborted with ``DriverUnavailable``.
        """
        if not await self.drivers.claim(driver_id):
            raise DriverUnavailable(f"Driver {driver_id} is not available right now")
        logger.info("Driver %d marked Not Available", driver_id)

    async def claim_first(self, candidate_ids: list[int]) -> int:
        """
        Claim the first candidate nobody else has taken and return its id.

        Candidates another transaction claimed since they were listed are
        skipped, so concurrent quick bookings spread over the free drivers.
        """
        for driver_id in candidate_ids:
            if await self.drivers.claim(driver_id):
                logger.info("Driver %d picked and marked Not Available", driver_id)
                return driver_id
        raise DriverUnavailable("No available driver found")

    async def on_booking_terminated(self, driver_id: int) -> None:
        """Hand the driver back to the pool after a booking ends."""
        if not await self.drivers.release(driver_id):
            raise DriverNotFound(f"Driver {driver_id} not found")
        logger.info("Driver %d marked Available", driver_id)
