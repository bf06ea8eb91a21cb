"""
Shared test fixtures.

Uses a file-backed SQLite database (via aiosqlite) per test so tests run
without Docker / PostgreSQL / Redis.  A file rather than ``:memory:`` gives
every session its own connection, which is what the concurrency tests need:
SQLite then serialises competing writers the way row locks do in
PostgreSQL.
"""

import itertools
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.domain.enums import ApprovalStatus, BookingStatus, DriverAvailability
from src.infrastructure.database import Base
from src.infrastructure.models import BookingModel, DriverModel, UserModel
from src.services.bookings import BookingService

TRIP_START = datetime(2026, 11, 1, 9, 0, tzinfo=timezone.utc)


# ── Test DB (SQLite file per test) ────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables, yield a session factory, then drop the engine."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def booking_service(session_factory) -> BookingService:
    return BookingService(session_factory, locks=None, retry_backoff=0)


# ── Row factories ─────────────────────────────────────────────────────


@pytest.fixture
def make_user(session_factory):
    counter = itertools.count(1)

    async def _make(**overrides) -> UserModel:
        n = next(counter)
        fields = {
            "name": f"Customer {n}",
            "email": f"customer{n}@example.com",
            "phone": f"98400000{n:02d}",
            "district": "Chennai",
            "password_hash": "!",
        }
        fields.update(overrides)
        async with session_factory() as session:
            user = UserModel(**fields)
            session.add(user)
            await session.commit()
        return user

    return _make


@pytest.fixture
def make_driver(session_factory):
    counter = itertools.count(1)

    async def _make(**overrides) -> DriverModel:
        n = next(counter)
        fields = {
            "name": f"Driver {n}",
            "email": f"driver{n}@example.com",
            "phone": f"90030000{n:02d}",
            "license_number": f"TN-{n:04d}",
            "district": "Chennai",
            "city": "Chennai",
            "vehicle_type": "Sedan",
            "salary_per_day": 800,
            "rating": 4.0,
            "availability": DriverAvailability.AVAILABLE,
            "approval_status": ApprovalStatus.APPROVED,
        }
        fields.update(overrides)
        async with session_factory() as session:
            driver = DriverModel(**fields)
            session.add(driver)
            await session.commit()
        return driver

    return _make


@pytest.fixture
def make_booking(session_factory):
    """Insert a booking row directly, bypassing the state machine."""
    counter = itertools.count(1)

    async def _make(user_id: int, driver_id: int, **overrides) -> BookingModel:
        n = next(counter)
        fields = {
            "user_id": user_id,
            "driver_id": driver_id,
            "pickup_location": "Chennai",
            "drop_location": "Madurai",
            "trip_start": TRIP_START + timedelta(hours=n),
            "status": BookingStatus.COMPLETED,
            "amount": 0.0,
        }
        fields.update(overrides)
        async with session_factory() as session:
            booking = BookingModel(**fields)
            session.add(booking)
            await session.commit()
        return booking

    return _make


@pytest.fixture
def fetch_driver(session_factory):
    """Read a driver row in a fresh session."""

    async def _fetch(driver_id: int) -> DriverModel:
        async with session_factory() as session:
            return await session.get(DriverModel, driver_id)

    return _fetch


@pytest.fixture
def fetch_booking(session_factory):
    async def _fetch(booking_id: int) -> BookingModel:
        async with session_factory() as session:
            return await session.get(BookingModel, booking_id)

    return _fetch
