"""
Redis-based distributed lock.

Used by create-booking to gate each driver: while one request for a driver
is being written, other processes trying the same driver back off straight
away instead of queueing on the driver row.  The database compare-and-set
on ``drivers.availability`` stays the authoritative guard; this lock only
keeps the losers off the database.

Implementation uses SET NX EX for acquire and a Lua script for
atomic check-and-delete on release.
"""

from __future__ import annotations

import uuid

import redis.asyncio as aioredis

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class DistributedLock:
    def __init__(
        self, client: aioredis.Redis, key: str, ttl_seconds: int = 10
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire. Returns True on success."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def release(self) -> bool:
        """Release only if we still own the lock (atomic via Lua)."""
        return bool(await self.redis.eval(_RELEASE_SCRIPT, 1, self.key, self.token))


class DriverLocks:
    """Hands out one ``DistributedLock`` per driver id."""

    def __init__(self, client: aioredis.Redis, ttl_seconds: int = 10):
        self.redis = client
        self.ttl = ttl_seconds

    def for_driver(self, driver_id: int) -> DistributedLock:
        return DistributedLock(self.redis, f"driver:{driver_id}", self.ttl)
