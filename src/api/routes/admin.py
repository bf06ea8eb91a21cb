"""
Admin / observability endpoints
===============================

GET   /api/v1/admin/health                   -- simple health check
GET   /api/v1/admin/stats                    -- platform-wide totals
PATCH /api/v1/admin/drivers/{id}/approval    -- approve / reject a driver
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, require_role
from src.api.middleware import limiter
from src.api.schemas import (
    AdminStatsResponse,
    DriverApprovalRequest,
    DriverResponse,
    HealthResponse,
)
from src.config import settings
from src.domain.entities import Actor
from src.domain.enums import ActorRole
from src.domain.errors import DriverNotFound
from src.infrastructure.repositories import DriverRepository
from src.services.queries import QueryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

admin_only = require_role(ActorRole.ADMIN)


@router.get(
    "/stats",
    response_model=AdminStatsResponse,
    summary="Users, drivers, bookings, revenue and pending approvals",
)
@limiter.limit(settings.rate_limit)
async def get_stats(
    request: Request,
    actor: Actor = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    return await QueryService(db).admin_stats()


@router.patch(
    "/drivers/{driver_id}/approval",
    response_model=DriverResponse,
    summary="Set a driver's approval status",
    description="Approval gates bookability; it never changes availability.",
)
@limiter.limit(settings.rate_limit)
async def set_driver_approval(
    request: Request,
    driver_id: int,
    body: DriverApprovalRequest,
    actor: Actor = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
):
    repo = DriverRepository(db)
    if not await repo.set_approval(driver_id, body.status):
        raise DriverNotFound(f"Driver {driver_id} not found")

    driver = await repo.get_by_id(driver_id)
    logger.info(
        "Driver %d approval set to %s by admin %d",
        driver_id,
        body.status.value,
        actor.id,
    )
    return driver


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
