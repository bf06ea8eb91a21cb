"""
Read-only projections over bookings and drivers.

Nothing here writes or enforces invariants; empty result sets come back as
zeros and empty lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.domain.entities import Actor
from src.domain.enums import BookingOrdering, BookingStatus
from src.domain.errors import BookingNotFound, DriverNotFound, Forbidden
from src.infrastructure.models import BookingModel, DriverModel
from src.infrastructure.repositories import (
    BookingRepository,
    DriverRepository,
    UserRepository,
)


@dataclass
class UserDashboardStats:
    total_bookings: int = 0
    by_status: dict[BookingStatus, int] = field(default_factory=dict)
    total_spent: float = 0.0
    favourite_driver_id: Optional[int] = None


@dataclass
class DriverStats:
    driver_id: int
    by_status: dict[BookingStatus, int] = field(default_factory=dict)
    total_trips: int = 0
    total_earnings: float = 0.0
    rating: float = 0.0


@dataclass
class AdminStats:
    total_users: int = 0
    total_drivers: int = 0
    total_bookings: int = 0
    total_revenue: float = 0.0
    pending_approvals: int = 0
    active_bookings: int = 0


class QueryService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.bookings = BookingRepository(session)
        self.drivers = DriverRepository(session)
        self.users = UserRepository(session)

    async def query_bookings(
        self,
        *,
        user_id: int | None = None,
        driver_id: int | None = None,
        ordering: BookingOrdering = BookingOrdering.TRIP_START_DESC,
        limit: int | None = None,
    ) -> list[BookingModel]:
        return await self.bookings.list_bookings(
            user_id=user_id, driver_id=driver_id, ordering=ordering, limit=limit
        )

    async def get_booking(self, booking_id: int, actor: Actor) -> BookingModel:
        row = await self.bookings.get_by_id(booking_id)
        if row is None:
            raise BookingNotFound(f"Booking {booking_id} not found")
        if not row.to_entity().is_party(actor):
            raise Forbidden(f"Booking {booking_id} does not belong to this {actor.role.value}")
        return row

    async def dashboard_stats(self, user_id: int) -> UserDashboardStats:
        by_status = await self.bookings.count_by_status(user_id=user_id)
        return UserDashboardStats(
            total_bookings=sum(by_status.values()),
            by_status=by_status,
            total_spent=await self.bookings.completed_amount(user_id=user_id),
            favourite_driver_id=await self.bookings.most_frequent_driver(user_id),
        )

    async def recent_bookings(
        self, user_id: int, limit: int | None = None
    ) -> list[BookingModel]:
        return await self.bookings.list_bookings(
            user_id=user_id,
            ordering=BookingOrdering.TRIP_START_DESC,
            limit=limit or settings.recent_bookings_limit,
        )

    async def recommended_drivers(self, limit: int | None = None) -> list[DriverModel]:
        return await self.drivers.get_recommended(
            limit or settings.recommended_drivers_limit
        )

    async def search_drivers(
        self, *, district: str | None = None, vehicle_type: str | None = None
    ) -> list[DriverModel]:
        return await self.drivers.search(district=district, vehicle_type=vehicle_type)

    async def driver_stats(self, driver_id: int) -> DriverStats:
        driver = await self.drivers.get_by_id(driver_id)
        if driver is None:
            raise DriverNotFound(f"Driver {driver_id} not found")
        by_status = await self.bookings.count_by_status(driver_id=driver_id)
        return DriverStats(
            driver_id=driver_id,
            by_status=by_status,
            total_trips=by_status[BookingStatus.COMPLETED],
            total_earnings=await self.bookings.completed_amount(driver_id=driver_id),
            rating=driver.rating or 0.0,
        )

    async def admin_stats(self) -> AdminStats:
        return AdminStats(
            total_users=await self.users.count(),
            total_drivers=await self.drivers.count(),
            total_bookings=await self.bookings.count(),
            total_revenue=await self.bookings.completed_amount(),
            pending_approvals=await self.drivers.count_pending_approval(),
            active_bookings=await self.bookings.count_active(),
        )
