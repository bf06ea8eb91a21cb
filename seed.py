"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 sample customers
  - 8 sample drivers around Tamil Nadu (6 approved, 2 awaiting approval)
  - 7 sample bookings (mix of Pending, Confirmed, Completed, Cancelled,
    Rejected) with driver availability matching their active bookings
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import text

from src.infrastructure.database import async_session_factory, engine
from src.infrastructure.models import BookingModel, DriverModel, UserModel
from src.domain.enums import (
    ACTIVE_STATUSES,
    ApprovalStatus,
    BookingStatus,
    DriverAvailability,
)

# Accounts are created by the registration service; seeded ones cannot log in.
UNUSABLE_PASSWORD = "!"

USERS = [
    {"name": "Aarav Sharma", "email": "aarav@example.com", "phone": "9840000001", "district": "Chennai"},
    {"name": "Priya Raman", "email": "priya@example.com", "phone": "9840000002", "district": "Madurai"},
    {"name": "Karthik Subramanian", "email": "karthik@example.com", "phone": "9840000003", "district": "Coimbatore"},
    {"name": "Divya Krishnan", "email": "divya@example.com", "phone": "9840000004", "district": "Chennai"},
    {"name": "Vignesh Kumar", "email": "vignesh@example.com", "phone": "9840000005", "district": "Trichy"},
    {"name": "Meena Iyer", "email": "meena@example.com", "phone": "9840000006", "district": "Salem"},
]

DRIVERS = [
    {"name": "Murugan S", "district": "Chennai", "city": "Chennai", "vehicle_type": "Sedan", "salary": 900, "rating": 4.8, "approval": ApprovalStatus.APPROVED},
    {"name": "Ravi Chandran", "district": "Chennai", "city": "Tambaram", "vehicle_type": "SUV", "salary": 1200, "rating": 4.6, "approval": ApprovalStatus.APPROVED},
    {"name": "Senthil Nathan", "district": "Madurai", "city": "Madurai", "vehicle_type": "Sedan", "salary": 800, "rating": 4.9, "approval": ApprovalStatus.APPROVED},
    {"name": "Arul Prakash", "district": "Coimbatore", "city": "Coimbatore", "vehicle_type": "Hatchback", "salary": 700, "rating": 4.2, "approval": ApprovalStatus.APPROVED},
    {"name": "Ganesh Babu", "district": "Trichy", "city": "Srirangam", "vehicle_type": "SUV", "salary": 1100, "rating": 4.4, "approval": ApprovalStatus.APPROVED},
    {"name": "Suresh Pandian", "district": "Salem", "city": "Salem", "vehicle_type": "Sedan", "salary": 650, "rating": 3.9, "approval": ApprovalStatus.APPROVED},
    {"name": "Bala Murali", "district": "Chennai", "city": "Avadi", "vehicle_type": "Sedan", "salary": 600, "rating": 0.0, "approval": ApprovalStatus.PENDING},
    {"name": "Dinesh Karthik", "district": "Madurai", "city": "Melur", "vehicle_type": "Van", "salary": 1500, "rating": 0.0, "approval": ApprovalStatus.PENDING},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        user_models = []
        for u in USERS:
            m = UserModel(password_hash=UNUSABLE_PASSWORD, **u)
            session.add(m)
            user_models.append(m)
        await session.flush()
        print(f"  Created {len(user_models)} users")

        # ── Drivers ───────────────────────────────────────────────────
        driver_models = []
        for i, d in enumerate(DRIVERS, start=1):
            m = DriverModel(
                name=d["name"],
                email=f"driver{i}@example.com",
                phone=f"90030000{i:02d}",
                license_number=f"TN{i:02d}2019000{i:04d}",
                district=d["district"],
                city=d["city"],
                vehicle_type=d["vehicle_type"],
                salary_per_day=d["salary"],
                rating=d["rating"],
                approval_status=d["approval"],
                availability=DriverAvailability.AVAILABLE,
            )
            session.add(m)
            driver_models.append(m)
        await session.flush()
        print(f"  Created {len(driver_models)} drivers")

        # ── Bookings ──────────────────────────────────────────────────
        now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        bookings_data = [
            # Active: these hold their drivers
            {"user": 0, "driver": 0, "pickup": "Chennai", "drop": "Madurai",
             "start": now + timedelta(days=1), "hours": 10,
             "status": BookingStatus.CONFIRMED, "amount": 900},
            {"user": 1, "driver": 2, "pickup": "Madurai", "drop": "Rameswaram",
             "start": now + timedelta(days=2), "hours": 6,
             "status": BookingStatus.PENDING, "amount": 800},
            # History
            {"user": 0, "driver": 0, "pickup": "Chennai", "drop": "Pondicherry",
             "start": now - timedelta(days=10), "hours": 8,
             "status": BookingStatus.COMPLETED, "amount": 900},
            {"user": 0, "driver": 1, "pickup": "Chennai", "drop": "Vellore",
             "start": now - timedelta(days=6), "hours": 5,
             "status": BookingStatus.COMPLETED, "amount": 1200},
            {"user": 2, "driver": 3, "pickup": "Coimbatore", "drop": "Ooty",
             "start": now - timedelta(days=4), "hours": 7,
             "status": BookingStatus.CANCELLED, "amount": 0},
            {"user": 3, "driver": 1, "pickup": "Tambaram", "drop": "Mahabalipuram",
             "start": now - timedelta(days=3), "hours": 4,
             "status": BookingStatus.REJECTED, "amount": 0},
            {"user": 4, "driver": 4, "pickup": "Trichy", "drop": "Thanjavur",
             "start": now - timedelta(days=1), "hours": 3,
             "status": BookingStatus.COMPLETED, "amount": 1100},
        ]

        for b in bookings_data:
            driver = driver_models[b["driver"]]
            session.add(
                BookingModel(
                    user_id=user_models[b["user"]].id,
                    driver_id=driver.id,
                    pickup_location=b["pickup"],
                    drop_location=b["drop"],
                    trip_start=b["start"],
                    trip_end=b["start"] + timedelta(hours=b["hours"]),
                    status=b["status"],
                    amount=b["amount"],
                )
            )
            if b["status"] in ACTIVE_STATUSES:
                driver.availability = DriverAvailability.NOT_AVAILABLE
        await session.flush()
        print(f"  Created {len(bookings_data)} bookings")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
