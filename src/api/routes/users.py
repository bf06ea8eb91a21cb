"""Customer dashboard endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_role
from src.api.middleware import limiter
from src.api.schemas import BookingResponse, DashboardStatsResponse
from src.config import settings
from src.domain.entities import Actor
from src.domain.enums import ActorRole
from src.services.queries import QueryService

router = APIRouter(prefix="/users", tags=["users"])

customer_only = require_role(ActorRole.CUSTOMER)


@router.get(
    "/me/dashboard",
    response_model=DashboardStatsResponse,
    summary="Booking counts, spend and favourite driver",
)
@limiter.limit(settings.rate_limit)
async def dashboard(
    request: Request,
    actor: Actor = Depends(customer_only),
    db: AsyncSession = Depends(get_db),
):
    return await QueryService(db).dashboard_stats(actor.id)


@router.get(
    "/me/recent-bookings",
    response_model=list[BookingResponse],
    summary="Latest bookings by trip start",
)
@limiter.limit(settings.rate_limit)
async def recent_bookings(
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=50),
    actor: Actor = Depends(customer_only),
    db: AsyncSession = Depends(get_db),
):
    return await QueryService(db).recent_bookings(actor.id, limit)
