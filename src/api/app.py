"""
FastAPI application factory.

* Registers routes for bookings, users, drivers and admin.
* Maps booking-core exceptions to JSON error responses.
* Applies rate-limiting middleware.
* Releases DB / Redis pools on shutdown via lifespan events.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.errors import register_error_handlers
from src.api.middleware import limiter
from src.api.routes import admin, bookings, drivers, users
from src.config import settings
from src.infrastructure.database import engine
from src.infrastructure.redis_client import close_redis

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Dispose connection pools on shutdown."""
    logger.info(
        "Booking API starting (driver locks %s)",
        "on" if settings.driver_locks_enabled else "off",
    )
    yield
    await close_redis()
    await engine.dispose()
    logger.info("Booking API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Acting Driver Booking API",
        description=(
            "Books acting-drivers for customer trips.  Owns the booking "
            "lifecycle (Pending -> Confirmed -> Completed, with Cancelled "
            "and Rejected exits) and keeps every driver's availability "
            "flag consistent with their active booking under concurrent "
            "requests."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_error_handlers(app)

    # Routers
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(users.router, prefix="/api/v1")
    app.include_router(drivers.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
