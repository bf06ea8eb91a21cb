"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``users``     -- customers who request drivers
* ``drivers``   -- acting-drivers for hire, with the availability flag
* ``bookings``  -- trip requests and their lifecycle status

Bookings reference users and drivers without cascading deletes: history is
kept for stats even though neither side is deleted in-core.

Indexes
-------
* **B-Tree** on ``bookings.status``, ``user_id``, ``driver_id``.
* **Partial unique** ``uq_bookings_live_trip`` on ``(user_id,
  pickup_location, drop_location, trip_start)`` over bookings that are not
  Cancelled, so the store itself refuses a second live copy of a trip.
* **B-Tree** on ``drivers.availability`` / ``approval_status`` / ``rating``
  for the recommendation and search queries.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)

from .database import Base
from src.domain.entities import Booking
from src.domain.enums import ApprovalStatus, BookingStatus, DriverAvailability


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(20), nullable=False)
    district = Column(String(120), nullable=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(20), nullable=False)
    license_number = Column(String(64), unique=True, nullable=False)
    district = Column(String(120), nullable=False)
    city = Column(String(120), nullable=False)
    vehicle_type = Column(String(50), nullable=True)
    salary_per_day = Column(Integer, nullable=False)
    rating = Column(Float, default=0.0, nullable=False)
    availability = Column(
        Enum(DriverAvailability),
        default=DriverAvailability.AVAILABLE,
        nullable=False,
    )
    approval_status = Column(
        Enum(ApprovalStatus), default=ApprovalStatus.PENDING, nullable=False
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("salary_per_day >= 500", name="ck_drivers_salary_min"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_drivers_rating_range"),
        Index("idx_drivers_availability", "availability"),
        Index("idx_drivers_approval", "approval_status"),
        Index("idx_drivers_rating", "rating"),
    )


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)

    pickup_location = Column(String(255), nullable=False)
    drop_location = Column(String(255), nullable=False)
    trip_start = Column(DateTime(timezone=True), nullable=False)
    trip_end = Column(DateTime(timezone=True), nullable=True)

    status = Column(
        Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False
    )
    amount = Column(Float, default=0.0, nullable=False)
    special_requests = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_bookings_amount_non_negative"),
        CheckConstraint(
            "trip_end IS NULL OR trip_end >= trip_start",
            name="ck_bookings_trip_window",
        ),
        Index("idx_bookings_status", "status"),
        Index("idx_bookings_user", "user_id"),
        Index("idx_bookings_driver", "driver_id"),
        Index(
            "uq_bookings_live_trip",
            "user_id",
            "pickup_location",
            "drop_location",
            "trip_start",
            unique=True,
            postgresql_where=text("status <> 'CANCELLED'"),
            sqlite_where=text("status <> 'CANCELLED'"),
        ),
    )

    def to_entity(self) -> Booking:
        return Booking(
            id=self.id,
            user_id=self.user_id,
            driver_id=self.driver_id,
            pickup_location=self.pickup_location,
            drop_location=self.drop_location,
            trip_start=self.trip_start,
            trip_end=self.trip_end,
            status=BookingStatus(self.status),
            amount=self.amount,
            special_requests=self.special_requests,
        )
