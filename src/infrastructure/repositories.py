"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  The two compare-and-set writes
(``DriverRepository.claim`` and ``BookingRepository.compare_and_set_status``)
are the serialisation points for concurrent actors: they report how many
rows they changed instead of trusting an earlier read.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingModel, DriverModel, UserModel
from src.domain.enums import (
    ACTIVE_STATUSES,
    ApprovalStatus,
    BookingOrdering,
    BookingStatus,
    DriverAvailability,
)

_ORDERINGS = {
    BookingOrdering.TRIP_START_DESC: (
        BookingModel.trip_start.desc(),
        BookingModel.id.desc(),
    ),
    BookingOrdering.TRIP_START_ASC: (
        BookingModel.trip_start.asc(),
        BookingModel.id.asc(),
    ),
    BookingOrdering.CREATED_DESC: (
        BookingModel.created_at.desc(),
        BookingModel.id.desc(),
    ),
}


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        *,
        user_id: int,
        driver_id: int,
        pickup_location: str,
        drop_location: str,
        trip_start: datetime,
        trip_end: datetime | None = None,
        amount: float = 0.0,
        special_requests: str | None = None,
    ) -> BookingModel:
        booking = BookingModel(
            user_id=user_id,
            driver_id=driver_id,
            pickup_location=pickup_location,
            drop_location=drop_location,
            trip_start=trip_start,
            trip_end=trip_end,
            amount=amount,
            special_requests=special_requests,
            status=BookingStatus.PENDING,
        )
        self.session.add(booking)
        await self.session.flush()
        await self.session.refresh(booking)
        return booking

    async def get_by_id(self, booking_id: int) -> Optional[BookingModel]:
        return await self.session.get(BookingModel, booking_id)

    async def get_for_update(self, booking_id: int) -> Optional[BookingModel]:
        """SELECT ... FOR UPDATE so concurrent transitions queue on the row."""
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def find_live_duplicate(
        self,
        *,
        user_id: int,
        pickup_location: str,
        drop_location: str,
        trip_start: datetime,
    ) -> Optional[BookingModel]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.user_id == user_id,
                BookingModel.pickup_location == pickup_location,
                BookingModel.drop_location == drop_location,
                BookingModel.trip_start == trip_start,
                BookingModel.status != BookingStatus.CANCELLED,
            )
            .order_by(BookingModel.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def compare_and_set_status(
        self,
        booking_id: int,
        expected: BookingStatus,
        new_status: BookingStatus,
    ) -> bool:
        """Write *new_status* only if the row still holds *expected*."""
        result = await self.session.execute(
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status == expected,
            )
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def list_bookings(
        self,
        *,
        user_id: int | None = None,
        driver_id: int | None = None,
        ordering: BookingOrdering = BookingOrdering.TRIP_START_DESC,
        limit: int | None = None,
    ) -> list[BookingModel]:
        query = select(BookingModel).order_by(*_ORDERINGS[ordering])
        if user_id is not None:
            query = query.where(BookingModel.user_id == user_id)
        if driver_id is not None:
            query = query.where(BookingModel.driver_id == driver_id)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_status(
        self, *, user_id: int | None = None, driver_id: int | None = None
    ) -> dict[BookingStatus, int]:
        query = select(BookingModel.status, func.count()).group_by(
            BookingModel.status
        )
        if user_id is not None:
            query = query.where(BookingModel.user_id == user_id)
        if driver_id is not None:
            query = query.where(BookingModel.driver_id == driver_id)
        result = await self.session.execute(query)
        counts = {status: 0 for status in BookingStatus}
        for status, count in result.all():
            counts[BookingStatus(status)] = count
        return counts

    async def completed_amount(
        self, *, user_id: int | None = None, driver_id: int | None = None
    ) -> float:
        query = select(func.coalesce(func.sum(BookingModel.amount), 0.0)).where(
            BookingModel.status == BookingStatus.COMPLETED
        )
        if user_id is not None:
            query = query.where(BookingModel.user_id == user_id)
        if driver_id is not None:
            query = query.where(BookingModel.driver_id == driver_id)
        result = await self.session.execute(query)
        return float(result.scalar() or 0.0)

    async def most_frequent_driver(self, user_id: int) -> Optional[int]:
        """Driver the user booked most often; ties go to the lowest id."""
        result = await self.session.execute(
            select(BookingModel.driver_id)
            .where(
                BookingModel.user_id == user_id,
                BookingModel.driver_id.is_not(None),
            )
            .group_by(BookingModel.driver_id)
            .order_by(func.count().desc(), BookingModel.driver_id.asc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def count(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(BookingModel)
        )
        return result.scalar() or 0

    async def count_active(self) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(BookingModel)
            .where(BookingModel.status.in_(sorted(ACTIVE_STATUSES)))
        )
        return result.scalar() or 0


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, driver_id: int) -> Optional[DriverModel]:
        return await self.session.get(DriverModel, driver_id)

    async def claim(self, driver_id: int) -> bool:
        """Flip Available -> Not Available; False if someone got there first."""
        result = await self.session.execute(
            update(DriverModel)
            .where(
                DriverModel.id == driver_id,
                DriverModel.availability == DriverAvailability.AVAILABLE,
            )
            .values(availability=DriverAvailability.NOT_AVAILABLE)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def release(self, driver_id: int) -> bool:
        """Set Available; False if the driver row does not exist."""
        result = await self.session.execute(
            update(DriverModel)
            .where(DriverModel.id == driver_id)
            .values(availability=DriverAvailability.AVAILABLE)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def set_approval(self, driver_id: int, status: ApprovalStatus) -> bool:
        result = await self.session.execute(
            update(DriverModel)
            .where(DriverModel.id == driver_id)
            .values(approval_status=status)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _bookable(self):
        return select(DriverModel).where(
            DriverModel.availability == DriverAvailability.AVAILABLE,
            DriverModel.approval_status == ApprovalStatus.APPROVED,
        )

    async def get_recommended(self, limit: int) -> list[DriverModel]:
        result = await self.session.execute(
            self._bookable()
            .order_by(DriverModel.rating.desc(), DriverModel.id.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def search(
        self, *, district: str | None = None, vehicle_type: str | None = None
    ) -> list[DriverModel]:
        query = self._bookable().order_by(
            DriverModel.rating.desc(), DriverModel.id.asc()
        )
        if district:
            query = query.where(
                func.lower(DriverModel.district) == district.strip().lower()
            )
        if vehicle_type:
            query = query.where(
                func.lower(DriverModel.vehicle_type) == vehicle_type.strip().lower()
            )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(DriverModel)
        )
        return result.scalar() or 0

    async def count_pending_approval(self) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(DriverModel)
            .where(DriverModel.approval_status == ApprovalStatus.PENDING)
        )
        return result.scalar() or 0


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def count(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(UserModel)
        )
        return result.scalar() or 0
