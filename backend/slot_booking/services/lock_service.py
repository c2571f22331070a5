"""
Distributed booking lock backed by Redis.
Implements the BookingLock interface for multi-worker deployments.

Fallback Pattern:
  If Redis is disabled or unreachable when a booking starts, the lock
  falls back to the in-process LocalBookingLock and logs a warning.
  Bookings keep flowing; serialization then only holds within each worker.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

from redis.exceptions import LockError, RedisError

from slot_booking.core.logging import get_logger
from slot_booking.core.metrics import lock_fallbacks
from slot_booking.infrastructure.redis_client import get_redis
from slot_booking.services.interfaces.booking_lock import BookingLock, LockTimeout, loggable_lock_key

logger = get_logger(__name__)


class RedisBookingLock(BookingLock):
    """
    One Redis lock per key, acquired in order.

    `timeout` bounds how long a crashed worker can keep a key locked;
    `blocking_timeout` bounds how long a request waits before giving up.
    """

    name = "redis"

    def __init__(self, fallback: BookingLock, timeout: float = 10.0, blocking_timeout: float = 5.0):
        self.fallback = fallback
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def hold(self, keys: Sequence[str]) -> AsyncIterator[None]:
        client = await get_redis()
        held = []
        if client is not None:
            try:
                held = await self._acquire_all(client, keys)
            except RedisError as e:
                logger.warning("redis_lock_unavailable", error=str(e))
                client = None

        if client is None:
            lock_fallbacks.inc()
            async with self.fallback.hold(keys):
                yield
            return

        try:
            yield
        finally:
            await self._release_all(held)

    async def _acquire_all(self, client, keys: Sequence[str]) -> list:
        held = []
        try:
            for key in keys:
                lock = client.lock(
                    f"lock:{key}",
                    timeout=self.timeout,
                    blocking_timeout=self.blocking_timeout,
                )
                if not await lock.acquire():
                    raise LockTimeout(key)
                held.append(lock)
        except BaseException:
            await self._release_all(held)
            raise
        return held

    async def _release_all(self, held: list) -> None:
        for lock in reversed(held):
            try:
                await lock.release()
            except (LockError, RedisError) as e:
                # lock expired before release; another worker may own the key now
                logger.warning("redis_lock_release_failed", key=loggable_lock_key(lock.name), error=str(e))
