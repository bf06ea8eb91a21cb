"""
Booking endpoints
=================

POST  /api/v1/bookings                    -- create a booking (201, status Pending)
GET   /api/v1/bookings                    -- list bookings visible to the caller
GET   /api/v1/bookings/{booking_id}       -- fetch one booking
PATCH /api/v1/bookings/{booking_id}/{action} -- accept | reject | cancel | complete
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_actor, get_booking_service, get_db, require_role
from src.api.middleware import limiter
from src.api.schemas import BookingCreateRequest, BookingResponse, ErrorResponse
from src.config import settings
from src.domain.entities import Actor
from src.domain.enums import ActorRole, BookingOrdering
from src.domain.errors import Forbidden, InvalidInput
from src.services.bookings import BookingService
from src.services.queries import QueryService

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post(
    "",
    status_code=201,
    response_model=BookingResponse,
    summary="Create a booking",
    responses={
        404: {"model": ErrorResponse, "description": "Driver not found"},
        409: {"model": ErrorResponse, "description": "Driver unavailable or duplicate trip"},
        422: {"model": ErrorResponse, "description": "Invalid trip request"},
    },
)
@limiter.limit(settings.rate_limit)
async def create_booking(
    request: Request,
    body: BookingCreateRequest,
    actor: Actor = Depends(require_role(ActorRole.CUSTOMER, ActorRole.ADMIN)),
    service: BookingService = Depends(get_booking_service),
):
    if actor.is_admin:
        if body.user_id is None:
            raise InvalidInput("user_id is required when booking for a customer")
        user_id = body.user_id
    else:
        if body.user_id is not None and body.user_id != actor.id:
            raise Forbidden("Customers can only book for themselves")
        user_id = actor.id

    return await service.create_booking(
        user_id=user_id,
        driver_id=body.driver_id,
        pickup_location=body.pickup_location,
        drop_location=body.drop_location,
        trip_start=body.trip_start,
        trip_end=body.trip_end,
        special_requests=body.special_requests,
        amount=body.amount,
    )


@router.get(
    "",
    response_model=list[BookingResponse],
    summary="List bookings",
    description=(
        "Customers see their own bookings and drivers the bookings assigned "
        "to them.  Admins see everything and may filter by user or driver."
    ),
)
@limiter.limit(settings.rate_limit)
async def list_bookings(
    request: Request,
    user_id: Optional[int] = None,
    driver_id: Optional[int] = None,
    order: BookingOrdering = BookingOrdering.TRIP_START_DESC,
    limit: Optional[int] = Query(None, ge=1, le=100),
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    if actor.role == ActorRole.CUSTOMER:
        user_id, driver_id = actor.id, None
    elif actor.role == ActorRole.DRIVER:
        user_id, driver_id = None, actor.id

    return await QueryService(db).query_bookings(
        user_id=user_id, driver_id=driver_id, ordering=order, limit=limit
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get a booking",
)
@limiter.limit(settings.rate_limit)
async def get_booking(
    request: Request,
    booking_id: int,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
):
    return await QueryService(db).get_booking(booking_id, actor)


@router.patch(
    "/{booking_id}/{action}",
    response_model=BookingResponse,
    summary="Move a booking through its lifecycle",
    description=(
        "``accept`` / ``reject`` (assigned driver, Pending only), ``cancel`` "
        "(owner or admin; also the driver once Confirmed) and ``complete`` "
        "(driver or admin, Confirmed only).  Cancelled, Rejected and "
        "Completed bookings free their driver."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Unknown action"},
        403: {"model": ErrorResponse, "description": "Actor not allowed"},
        404: {"model": ErrorResponse, "description": "Booking not found"},
        409: {"model": ErrorResponse, "description": "Illegal transition"},
    },
)
@limiter.limit(settings.rate_limit)
async def transition_booking(
    request: Request,
    booking_id: int,
    action: str,
    actor: Actor = Depends(get_actor),
    service: BookingService = Depends(get_booking_service),
):
    return await service.transition_booking(booking_id, action, actor)
