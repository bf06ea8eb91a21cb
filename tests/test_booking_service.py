"""
Booking service tests against a real (SQLite) database.

Covers the create-booking conflict checks, every lifecycle transition and
the driver availability flag that each of them must leave behind.
"""

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from src.domain.entities import Actor
from src.domain.enums import (
    ActorRole,
    ApprovalStatus,
    BookingAction,
    BookingStatus,
    DriverAvailability,
)
from src.domain.errors import (
    BookingNotFound,
    DriverNotFound,
    DriverUnavailable,
    DuplicateBooking,
    Forbidden,
    InvalidInput,
    InvalidTransition,
    UnknownAction,
)
from src.infrastructure.models import BookingModel
from tests.conftest import TRIP_START

ADMIN = Actor(id=1, role=ActorRole.ADMIN)


def customer(user) -> Actor:
    return Actor(id=user.id, role=ActorRole.CUSTOMER)


def driver_actor(driver) -> Actor:
    return Actor(id=driver.id, role=ActorRole.DRIVER)


async def count_bookings(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(BookingModel))
        return result.scalar()


@pytest.fixture
def book(booking_service):
    async def _book(user, driver, **overrides):
        fields = dict(
            user_id=user.id,
            driver_id=driver.id if driver is not None else None,
            pickup_location="Chennai",
            drop_location="Madurai",
            trip_start=TRIP_START,
        )
        fields.update(overrides)
        return await booking_service.create_booking(**fields)

    return _book


# ── CreateBooking ─────────────────────────────────────────────────────


class TestCreateBooking:
    @pytest.mark.asyncio
    async def test_happy_path_claims_driver(self, book, make_user, make_driver, fetch_driver):
        user = await make_user()
        driver = await make_driver()

        booking = await book(user, driver, amount=900, special_requests="AC car")

        assert booking.id is not None
        assert booking.status == BookingStatus.PENDING
        assert booking.driver_id == driver.id
        assert booking.amount == 900
        assert booking.special_requests == "AC car"
        assert (await fetch_driver(driver.id)).availability == DriverAvailability.NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_identical_request_is_duplicate(
        self, session_factory, book, make_user, make_driver
    ):
        user = await make_user()
        driver = await make_driver()
        await book(user, driver)

        with pytest.raises(DuplicateBooking):
            await book(user, driver)
        assert await count_bookings(session_factory) == 1

    @pytest.mark.asyncio
    async def test_duplicate_matches_regardless_of_driver(self, book, make_user, make_driver):
        user = await make_user()
        await book(user, await make_driver())

        with pytest.raises(DuplicateBooking):
            await book(user, await make_driver())

    @pytest.mark.asyncio
    async def test_cancelled_trip_can_be_rebooked(
        self, booking_service, book, make_user, make_driver, fetch_driver
    ):
        user = await make_user()
        driver = await make_driver()
        first = await book(user, driver)
        await booking_service.transition_booking(first.id, "cancel", customer(user))

        second = await book(user, driver)

        assert second.id != first.id
        assert second.status == BookingStatus.PENDING
        assert (await fetch_driver(driver.id)).availability == DriverAvailability.NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_rejected_trip_still_counts_as_duplicate(
        self, booking_service, book, make_user, make_driver
    ):
        user = await make_user()
        driver = await make_driver()
        first = await book(user, driver)
        await booking_service.transition_booking(first.id, "reject", driver_actor(driver))

        with pytest.raises(DuplicateBooking):
            await book(user, driver)

    @pytest.mark.asyncio
    async def test_busy_driver_unavailable_to_other_user(
        self, session_factory, book, make_user, make_driver
    ):
        driver = await make_driver()
        await book(await make_user(), driver)

        with pytest.raises(DriverUnavailable):
            await book(await make_user(), driver, drop_location="Trichy")
        assert await count_bookings(session_factory) == 1

    @pytest.mark.asyncio
    async def test_same_user_different_trip_blocked_by_availability(
        self, book, make_user, make_driver
    ):
        user = await make_user()
        driver = await make_driver()
        await book(user, driver)

        with pytest.raises(DriverUnavailable):
            await book(user, driver, trip_start=TRIP_START + timedelta(days=1))

    @pytest.mark.asyncio
    async def test_unapproved_driver_unavailable(
        self, book, make_user, make_driver, fetch_driver
    ):
        driver = await make_driver(approval_status=ApprovalStatus.PENDING)

        with pytest.raises(DriverUnavailable):
            await book(await make_user(), driver)
        assert (await fetch_driver(driver.id)).availability == DriverAvailability.AVAILABLE

    @pytest.mark.asyncio
    async def test_unknown_driver(self, booking_service, make_user):
        user = await make_user()
        with pytest.raises(DriverNotFound):
            await booking_service.create_booking(
                user_id=user.id,
                driver_id=999,
                pickup_location="Chennai",
                drop_location="Madurai",
                trip_start=TRIP_START,
            )

    @pytest.mark.asyncio
    async def test_unknown_user(self, session_factory, booking_service, make_driver, fetch_driver):
        driver = await make_driver()
        with pytest.raises(InvalidInput):
            await booking_service.create_booking(
                user_id=999,
                driver_id=driver.id,
                pickup_location="Chennai",
                drop_location="Madurai",
                trip_start=TRIP_START,
            )
        assert await count_bookings(session_factory) == 0
        assert (await fetch_driver(driver.id)).availability == DriverAvailability.AVAILABLE

    @pytest.mark.asyncio
    async def test_same_pickup_and_drop_rejected_before_store(
        self, session_factory, book, make_user, make_driver, fetch_driver
    ):
        driver = await make_driver()
        with pytest.raises(InvalidInput):
            await book(await make_user(), driver, drop_location=" chennai")
        assert await count_bookings(session_factory) == 0
        assert (await fetch_driver(driver.id)).availability == DriverAvailability.AVAILABLE

    @pytest.mark.asyncio
    async def test_driver_picked_when_none_given(self, book, make_user, make_driver):
        await make_driver(rating=4.1)
        best = await make_driver(rating=4.9)
        await make_driver(rating=5.0, approval_status=ApprovalStatus.PENDING)

        booking = await book(await make_user(), None)

        assert booking.driver_id == best.id

    @pytest.mark.asyncio
    async def test_quick_booking_checks_duplicates(
        self, session_factory, book, make_user, make_driver
    ):
        await make_driver()
        await make_driver()
        user = await make_user()
        await book(user, None)

        with pytest.raises(DuplicateBooking):
            await book(user, None)
        assert await count_bookings(session_factory) == 1

    @pytest.mark.asyncio
    async def test_no_driver_to_pick(self, book, make_user, make_driver):
        await make_driver(availability=DriverAvailability.NOT_AVAILABLE)
        with pytest.raises(DriverUnavailable):
            await book(await make_user(), None)


# ── TransitionBooking ─────────────────────────────────────────────────


class TestTransitionBooking:
    @pytest.mark.asyncio
    async def test_accept_keeps_driver_busy(
        self, booking_service, book, make_user, make_driver, fetch_driver
    ):
        driver = await make_driver()
        booking = await book(await make_user(), driver)

        updated = await booking_service.transition_booking(
            booking.id, "accept", driver_actor(driver)
        )

        assert updated.status == BookingStatus.CONFIRMED
        assert (await fetch_driver(driver.id)).availability == DriverAvailability.NOT_AVAILABLE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["reject", "cancel"])
    async def test_ending_pending_booking_frees_driver(
        self, action, booking_service, book, make_user, make_driver, fetch_driver
    ):
        user = await make_user()
        driver = await make_driver()
        booking = await book(user, driver)
        actor = driver_actor(driver) if action == "reject" else customer(user)

        await booking_service.transition_booking(booking.id, action, actor)

        assert (await fetch_driver(driver.id)).availability == DriverAvailability.AVAILABLE

    @pytest.mark.asyncio
    async def test_full_lifecycle_to_completed(
        self, booking_service, book, make_user, make_driver, fetch_driver, fetch_booking
    ):
        driver = await make_driver()
        booking = await book(await make_user(), driver)

        await booking_service.transition_booking(booking.id, "accept", driver_actor(driver))
        await booking_service.transition_booking(
            booking.id, BookingAction.COMPLETE, driver_actor(driver)
        )

        assert (await fetch_booking(booking.id)).status == BookingStatus.COMPLETED
        assert (await fetch_driver(driver.id)).availability == DriverAvailability.AVAILABLE

    @pytest.mark.asyncio
    async def test_freed_driver_can_be_booked_again(
        self, booking_service, book, make_user, make_driver
    ):
        driver = await make_driver()
        booking = await book(await make_user(), driver)
        await booking_service.transition_booking(booking.id, "reject", driver_actor(driver))

        again = await book(await make_user(), driver)

        assert again.status == BookingStatus.PENDING

    @pytest.mark.asyncio
    async def test_admin_cancels_confirmed(
        self, booking_service, book, make_user, make_driver, fetch_driver
    ):
        driver = await make_driver()
        booking = await book(await make_user(), driver)
        await booking_service.transition_booking(booking.id, "accept", driver_actor(driver))

        updated = await booking_service.transition_booking(booking.id, "cancel", ADMIN)

        assert updated.status == BookingStatus.CANCELLED
        assert (await fetch_driver(driver.id)).availability == DriverAvailability.AVAILABLE

    @pytest.mark.asyncio
    async def test_double_cancel_is_invalid(
        self, booking_service, book, make_user, make_driver
    ):
        user = await make_user()
        booking = await book(user, await make_driver())
        await booking_service.transition_booking(booking.id, "cancel", customer(user))

        with pytest.raises(InvalidTransition):
            await booking_service.transition_booking(booking.id, "cancel", customer(user))

    @pytest.mark.asyncio
    async def test_complete_pending_is_invalid(
        self, booking_service, book, make_user, make_driver, fetch_booking, fetch_driver
    ):
        driver = await make_driver()
        booking = await book(await make_user(), driver)

        with pytest.raises(InvalidTransition):
            await booking_service.transition_booking(
                booking.id, "complete", driver_actor(driver)
            )
        assert (await fetch_booking(booking.id)).status == BookingStatus.PENDING
        assert (await fetch_driver(driver.id)).availability == DriverAvailability.NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_other_driver_forbidden(
        self, booking_service, book, make_user, make_driver, fetch_booking
    ):
        booking = await book(await make_user(), await make_driver())
        stranger = await make_driver()

        with pytest.raises(Forbidden):
            await booking_service.transition_booking(
                booking.id, "accept", driver_actor(stranger)
            )
        assert (await fetch_booking(booking.id)).status == BookingStatus.PENDING

    @pytest.mark.asyncio
    async def test_customer_cannot_accept_own_booking(
        self, booking_service, book, make_user, make_driver
    ):
        user = await make_user()
        booking = await book(user, await make_driver())
        with pytest.raises(Forbidden):
            await booking_service.transition_booking(booking.id, "accept", customer(user))

    @pytest.mark.asyncio
    async def test_unknown_action(self, booking_service, book, make_user, make_driver):
        user = await make_user()
        booking = await book(user, await make_driver())
        with pytest.raises(UnknownAction):
            await booking_service.transition_booking(booking.id, "approve", customer(user))

    @pytest.mark.asyncio
    async def test_unknown_booking(self, booking_service):
        with pytest.raises(BookingNotFound):
            await booking_service.transition_booking(999, "cancel", ADMIN)

    @pytest.mark.asyncio
    async def test_unknown_action_checked_before_booking_lookup(self, booking_service):
        with pytest.raises(UnknownAction):
            await booking_service.transition_booking(999, "approve", ADMIN)


# ── Live-trip uniqueness in the store ─────────────────────────────────


class TestLiveTripIndex:
    @pytest.mark.asyncio
    async def test_second_live_copy_refused(self, make_user, make_driver, make_booking):
        user = await make_user()
        d1, d2 = await make_driver(), await make_driver()
        await make_booking(user.id, d1.id, trip_start=TRIP_START, status=BookingStatus.PENDING)

        with pytest.raises(IntegrityError):
            await make_booking(
                user.id, d2.id, trip_start=TRIP_START, status=BookingStatus.COMPLETED
            )

    @pytest.mark.asyncio
    async def test_cancelled_copies_do_not_count(
        self, session_factory, make_user, make_driver, make_booking
    ):
        user = await make_user()
        driver = await make_driver()
        for status in (BookingStatus.CANCELLED, BookingStatus.CANCELLED, BookingStatus.PENDING):
            await make_booking(user.id, driver.id, trip_start=TRIP_START, status=status)

        assert await count_bookings(session_factory) == 3
