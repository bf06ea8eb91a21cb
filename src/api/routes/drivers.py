"""
Driver endpoints
================

GET /api/v1/drivers/recommended -- top-rated drivers that can be booked now
GET /api/v1/drivers/search      -- bookable drivers by district / vehicle type
GET /api/v1/drivers/me/stats    -- the calling driver's trip and earnings stats
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_role
from src.api.middleware import limiter
from src.api.schemas import DriverResponse, DriverStatsResponse
from src.config import settings
from src.domain.entities import Actor
from src.domain.enums import ActorRole
from src.services.queries import QueryService

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.get(
    "/recommended",
    response_model=list[DriverResponse],
    summary="Recommended drivers",
)
@limiter.limit(settings.rate_limit)
async def recommended_drivers(
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    return await QueryService(db).recommended_drivers(limit)


@router.get(
    "/search",
    response_model=list[DriverResponse],
    summary="Search bookable drivers",
)
@limiter.limit(settings.rate_limit)
async def search_drivers(
    request: Request,
    district: Optional[str] = None,
    vehicle_type: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    return await QueryService(db).search_drivers(
        district=district, vehicle_type=vehicle_type
    )


@router.get(
    "/me/stats",
    response_model=DriverStatsResponse,
    summary="Driver dashboard stats",
)
@limiter.limit(settings.rate_limit)
async def driver_stats(
    request: Request,
    actor: Actor = Depends(require_role(ActorRole.DRIVER)),
    db: AsyncSession = Depends(get_db),
):
    return await QueryService(db).driver_stats(actor.id)
