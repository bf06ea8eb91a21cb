"""Initial schema: users, drivers and bookings.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

# SQLAlchemy ``Enum(PyEnum)`` persists member names
BOOKING_STATUS = sa.Enum(
    "PENDING", "CONFIRMED", "COMPLETED", "CANCELLED", "REJECTED",
    name="bookingstatus",
)
DRIVER_AVAILABILITY = sa.Enum(
    "AVAILABLE", "NOT_AVAILABLE", name="driveravailability"
)
APPROVAL_STATUS = sa.Enum("PENDING", "APPROVED", "REJECTED", name="approvalstatus")


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("district", sa.String(120), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("license_number", sa.String(64), unique=True, nullable=False),
        sa.Column("district", sa.String(120), nullable=False),
        sa.Column("city", sa.String(120), nullable=False),
        sa.Column("vehicle_type", sa.String(50), nullable=True),
        sa.Column("salary_per_day", sa.Integer, nullable=False),
        sa.Column("rating", sa.Float, nullable=False, server_default="0"),
        sa.Column(
            "availability",
            DRIVER_AVAILABILITY,
            nullable=False,
            server_default="AVAILABLE",
        ),
        sa.Column(
            "approval_status",
            APPROVAL_STATUS,
            nullable=False,
            server_default="PENDING",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("salary_per_day >= 500", name="ck_drivers_salary_min"),
        sa.CheckConstraint(
            "rating >= 0 AND rating <= 5", name="ck_drivers_rating_range"
        ),
    )
    op.create_index("idx_drivers_availability", "drivers", ["availability"])
    op.create_index("idx_drivers_approval", "drivers", ["approval_status"])
    op.create_index("idx_drivers_rating", "drivers", ["rating"])

    # ── bookings ──────────────────────────────────────────────────────
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("drivers.id"), nullable=True
        ),
        sa.Column("pickup_location", sa.String(255), nullable=False),
        sa.Column("drop_location", sa.String(255), nullable=False),
        sa.Column("trip_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("trip_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status", BOOKING_STATUS, nullable=False, server_default="PENDING"
        ),
        sa.Column("amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("special_requests", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("amount >= 0", name="ck_bookings_amount_non_negative"),
        sa.CheckConstraint(
            "trip_end IS NULL OR trip_end >= trip_start",
            name="ck_bookings_trip_window",
        ),
    )
    op.create_index("idx_bookings_status", "bookings", ["status"])
    op.create_index("idx_bookings_user", "bookings", ["user_id"])
    op.create_index("idx_bookings_driver", "bookings", ["driver_id"])
    op.create_index(
        "uq_bookings_live_trip",
        "bookings",
        ["user_id", "pickup_location", "drop_location", "trip_start"],
        unique=True,
        postgresql_where=sa.text("status <> 'CANCELLED'"),
    )


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("drivers")
    op.drop_table("users")
    BOOKING_STATUS.drop(op.get_bind(), checkfirst=True)
    DRIVER_AVAILABILITY.drop(op.get_bind(), checkfirst=True)
    APPROVAL_STATUS.drop(op.get_bind(), checkfirst=True)
