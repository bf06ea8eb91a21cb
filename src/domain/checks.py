"""
Store-free checks on a create-booking request.

These run before a transaction is opened so malformed requests are turned
away without touching the database.  The store-backed half of the conflict
check (duplicates, driver availability) lives in ``src.services.conflicts``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .errors import InvalidInput


@dataclass(frozen=True)
class TripRequest:
    """A create-booking request after normalisation."""

    pickup_location: str
    drop_location: str
    trip_start: datetime
    trip_end: Optional[datetime]
    amount: float
    special_requests: Optional[str]


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def same_place(a: str, b: str) -> bool:
    return a.strip().casefold() == b.strip().casefold()


def check_trip_request(
    *,
    pickup_location: Optional[str],
    drop_location: Optional[str],
    trip_start: Optional[datetime],
    trip_end: Optional[datetime] = None,
    amount: Optional[float] = None,
    special_requests: Optional[str] = None,
) -> TripRequest:
    pickup = (pickup_location or "").strip()
    drop = (drop_location or "").strip()
    if not pickup or not drop:
        raise InvalidInput("pickup_location and drop_location are required")
    if trip_start is None:
        raise InvalidInput("trip_start is required")
    if same_place(pickup, drop):
        raise InvalidInput("Pickup and drop locations cannot be the same")

    start = to_utc(trip_start)
    end = to_utc(trip_end) if trip_end is not None else None
    if end is not None and end < start:
        raise InvalidInput("trip_end must not be before trip_start")

    fare = 0.0 if amount is None else float(amount)
    if fare < 0:
        raise InvalidInput("amount must be non-negative")

    return TripRequest(
        pickup_location=pickup,
        drop_location=drop,
        trip_start=start,
        trip_end=end,
        amount=fare,
        special_requests=(special_requests or "").strip() or None,
    )
