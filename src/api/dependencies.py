"""FastAPI dependency injection helpers."""

from typing import Callable

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.domain.entities import Actor
from src.domain.enums import ActorRole
from src.domain.errors import Forbidden
from src.infrastructure.database import async_session_factory
from src.infrastructure.locks import DriverLocks
from src.infrastructure.redis_client import get_redis
from src.services.bookings import BookingService


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_booking_service() -> BookingService:
    """Booking writes open their own transactions from the session factory."""
    locks = None
    if settings.driver_locks_enabled:
        locks = DriverLocks(await get_redis(), settings.driver_lock_ttl_seconds)
    return BookingService(async_session_factory, locks=locks)


async def get_actor(
    x_actor_id: str | None = Header(None),
    x_actor_role: str | None = Header(None),
) -> Actor:
    """Caller identity, as forwarded by the upstream auth layer."""
    if not x_actor_id or not x_actor_role:
        raise HTTPException(status_code=401, detail="Actor headers required")
    try:
        return Actor(id=int(x_actor_id), role=ActorRole(x_actor_role.strip().lower()))
    except ValueError:
        raise HTTPException(status_code=401, detail="Malformed actor headers") from None


def require_role(*roles: ActorRole) -> Callable:
    async def _check(actor: Actor = Depends(get_actor)) -> Actor:
        if actor.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise Forbidden(f"Access denied: {allowed} role required")
        return actor

    return _check
