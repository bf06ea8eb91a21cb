"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.domain.enums import ApprovalStatus, BookingStatus, DriverAvailability


# ── Requests ──────────────────────────────────────────────────────────


class BookingCreateRequest(BaseModel):
    driver_id: Optional[int] = Field(
        None,
        description="Driver to book. Omit to get the highest-rated available driver.",
    )
    user_id: Optional[int] = Field(
        None, description="Only admins may book on behalf of another customer."
    )
    pickup_location: str = Field(..., min_length=1, max_length=255)
    drop_location: str = Field(..., min_length=1, max_length=255)
    trip_start: datetime
    trip_end: Optional[datetime] = None
    special_requests: Optional[str] = Field(None, max_length=2000)
    amount: Optional[float] = Field(None, ge=0)


class DriverApprovalRequest(BaseModel):
    status: ApprovalStatus


# ── Responses ─────────────────────────────────────────────────────────


class BookingResponse(BaseModel):
    id: int
    user_id: int
    driver_id: Optional[int] = None
    pickup_location: str
    drop_location: str
    trip_start: datetime
    trip_end: Optional[datetime] = None
    status: BookingStatus
    amount: float
    special_requests: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DriverResponse(BaseModel):
    id: int
    name: str
    district: str
    city: str
    vehicle_type: Optional[str] = None
    rating: float
    salary_per_day: int
    availability: DriverAvailability
    approval_status: ApprovalStatus

    model_config = {"from_attributes": True}


class DashboardStatsResponse(BaseModel):
    total_bookings: int
    by_status: dict[BookingStatus, int]
    total_spent: float
    favourite_driver_id: Optional[int] = None

    model_config = {"from_attributes": True}


class DriverStatsResponse(BaseModel):
    driver_id: int
    by_status: dict[BookingStatus, int]
    total_trips: int
    total_earnings: float
    rating: float

    model_config = {"from_attributes": True}


class AdminStatsResponse(BaseModel):
    total_users: int
    total_drivers: int
    total_bookings: int
    total_revenue: float
    pending_approvals: int
    active_bookings: int

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: Optional[str] = None
