"""
Booking State Machine service
=============================

The two write operations of the booking core:

* ``create_booking``     -- conflict check, driver claim and insert
* ``transition_booking`` -- accept / reject / cancel / complete

Concurrency safety
------------------
* Each call is one transaction (``run_in_transaction``): the booking row
  and the driver's availability flag commit together or not at all.
* **Conditional update** on ``drivers.availability`` makes two concurrent
  creates against one driver end with exactly one winner.
* A **partial unique index** on the live trip makes two concurrent creates
  of one trip by one customer end with exactly one booking, whichever
  drivers they name.
* **SELECT ... FOR UPDATE** plus a status compare-and-set on ``bookings``
  makes two concurrent transitions on one booking end with exactly one
  winner; the loser sees ``InvalidTransition`` and releases nothing.
* Optional **Redis lock** per driver turns away concurrent creates before
  they reach the database.
"""

from __future__ import annotations

import logging
from datetime import datetime

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config import settings
from src.domain.checks import TripRequest, check_trip_request
from src.domain.entities import Actor, parse_action
from src.domain.errors import (
    BookingNotFound,
    DriverUnavailable,
    DuplicateBooking,
    InvalidInput,
    InvalidTransition,
    StoreUnavailable,
)
from src.domain.enums import BookingAction
from src.infrastructure.locks import DriverLocks
from src.infrastructure.models import BookingModel
from src.infrastructure.repositories import (
    BookingRepository,
    DriverRepository,
    UserRepository,
)
from src.infrastructure.transactions import is_unique_violation, run_in_transaction
from src.services.availability import AvailabilityGuard
from src.services.conflicts import ConflictDetector

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: DriverLocks | None = None,
        retry_backoff: float | None = None,
    ):
        self.session_factory = session_factory
        self.locks = locks
        self.retry_backoff = (
            settings.store_retry_backoff_seconds
            if retry_backoff is None
            else retry_backoff
        )

    # ── CreateBooking ─────────────────────────────────────────────────

    async def create_booking(
        self,
        *,
        user_id: int,
        driver_id: int | None,
        pickup_location: str,
        drop_location: str,
        trip_start: datetime,
        trip_end: datetime | None = None,
        special_requests: str | None = None,
        amount: float | None = None,
    ) -> BookingModel:
        trip = check_trip_request(
            pickup_location=pickup_location,
            drop_location=drop_location,
            trip_start=trip_start,
            trip_end=trip_end,
            amount=amount,
            special_requests=special_requests,
        )
        if driver_id is None or self.locks is None:
            return await self._create(user_id, driver_id, trip)

        lock = self.locks.for_driver(driver_id)
        try:
            acquired = await lock.acquire()
        except RedisError as exc:
            logger.exception("Driver lock store unreachable")
            raise StoreUnavailable() from exc
        if not acquired:
            logger.info("Driver %d busy with another booking request", driver_id)
            raise DriverUnavailable(f"Driver {driver_id} is not available right now")

        try:
            return await self._create(user_id, driver_id, trip)
        finally:
            try:
                await lock.release()
            except RedisError:
                logger.warning(
                    "Could not release %s; it expires in %ds", lock.key, lock.ttl
                )

    async def _create(
        self, user_id: int, driver_id: int | None, trip: TripRequest
    ) -> BookingModel:
        async def work(session: AsyncSession) -> BookingModel:
            if await UserRepository(session).get_by_id(user_id) is None:
                raise InvalidInput(f"User {user_id} not found")

            bookings = BookingRepository(session)
            drivers = DriverRepository(session)
            guard = AvailabilityGuard(drivers)
            conflicts = ConflictDetector(guard, bookings)
            if driver_id is None:
                # Quick booking: best-rated driver still free at claim time.
                await conflicts.check_duplicate(user_id, trip)
                candidates = await drivers.search()
                chosen = await guard.claim_first([d.id for d in candidates])
            else:
                await conflicts.check_create(user_id, driver_id, trip)
                await guard.on_booking_created(driver_id)
                chosen = driver_id
            return await bookings.create(
                user_id=user_id,
                driver_id=chosen,
                pickup_location=trip.pickup_location,
                drop_location=trip.drop_location,
                trip_start=trip.trip_start,
                trip_end=trip.trip_end,
                amount=trip.amount,
                special_requests=trip.special_requests,
            )

        try:
            booking = await run_in_transaction(
                self.session_factory, work, retry_backoff=self.retry_backoff
            )
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            logger.info("Concurrent duplicate trip refused for user %d", user_id)
            raise DuplicateBooking(
                "Duplicate booking detected. You have already booked this trip."
            ) from exc
        logger.info(
            "Booking %d created for user %d with driver %d",
            booking.id,
            user_id,
            booking.driver_id,
        )
        return booking

    # ── TransitionBooking ─────────────────────────────────────────────

    async def transition_booking(
        self, booking_id: int, action: str | BookingAction, actor: Actor
    ) -> BookingModel:
        parsed = parse_action(action)

        async def work(session: AsyncSession) -> BookingModel:
            bookings = BookingRepository(session)
            row = await bookings.get_for_update(booking_id)
            if row is None:
                raise BookingNotFound(f"Booking {booking_id} not found")

            booking = row.to_entity()
            previous = booking.status
            new_status = booking.apply(parsed, actor)

            if not await bookings.compare_and_set_status(
                booking_id, previous, new_status
            ):
                raise InvalidTransition(
                    f"Booking {booking_id} is no longer {previous.value}"
                )
            if booking.releases_driver and booking.driver_id is not None:
                guard = AvailabilityGuard(DriverRepository(session))
                await guard.on_booking_terminated(booking.driver_id)

            await session.refresh(row)
            return row

        booking = await run_in_transaction(
            self.session_factory, work, retry_backoff=self.retry_backoff
        )
        logger.info(
            "Booking %d -> %s by %s %d",
            booking_id,
            booking.status.value,
            actor.role.value,
            actor.id,
        )
        return booking
