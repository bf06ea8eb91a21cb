"""
Transaction runner for booking writes.

Each unit of work gets a fresh ``AsyncSession`` inside ``session.begin()``:
it commits when the callable returns and rolls back when it raises, so a
rejected booking operation never leaves a half-applied write.

Transient serialisation conflicts (PostgreSQL SQLSTATE 40001 / 40P01,
SQLite "database is locked") are retried once after a short backoff.
Anything that still fails, or a store that cannot be reached, surfaces as
``StoreUnavailable``.  Integrity errors pass through untouched; the caller
knows which constraint it was racing on.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.errors import StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRANSIENT_SQLSTATES = {"40001", "40P01"}
_UNIQUE_VIOLATION = "23505"


def is_serialization_failure(exc: DBAPIError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code in _TRANSIENT_SQLSTATES or "database is locked" in str(orig)


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code == _UNIQUE_VIOLATION or "UNIQUE constraint failed" in str(orig)


async def run_in_transaction(
    session_factory: async_sessionmaker[AsyncSession],
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    retry_backoff: float = 0.05,
) -> T:
    for attempt in (1, 2):
        try:
            async with session_factory() as session:
                async with session.begin():
                    return await work(session)
        except IntegrityError:
            raise
        except DBAPIError as exc:
            if is_serialization_failure(exc):
                if attempt == 1:
                    logger.warning(
                        "Serialization conflict, retrying in %.2fs: %s",
                        retry_backoff,
                        exc.orig,
                    )
                    await asyncio.sleep(retry_backoff)
                    continue
                logger.exception("Serialization conflict persisted after retry")
                raise StoreUnavailable() from exc
            if isinstance(exc, (OperationalError, InterfaceError)):
                logger.exception("Booking store unreachable")
                raise StoreUnavailable() from exc
            raise
        except OSError as exc:
            logger.exception("Booking store unreachable")
            raise StoreUnavailable() from exc
    raise AssertionError("unreachable")  # pragma: no cover
