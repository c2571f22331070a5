"""
In-process booking lock strategies.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

from slot_booking.services.interfaces.booking_lock import BookingLock, LockTimeout


class LocalBookingLock(BookingLock):
    """
    Per-key asyncio locks.

    Use when:
    - A single uvicorn worker serves all bookings
    - Redis is not deployed

    Locks are created on demand and dropped once no request holds or
    waits on them, so the registry does not grow with every date booked.
    """

    name = "local"

    def __init__(self, blocking_timeout: float = 5.0):
        self.blocking_timeout = blocking_timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, keys: Sequence[str]) -> AsyncIterator[None]:
        acquired: list[str] = []
        try:
            for key in keys:
                lock = self._checkout(key)
                try:
                    granted = await self._acquire(lock)
                except BaseException:
                    self._checkin(key)
                    raise
                if not granted:
                    self._checkin(key)
                    raise LockTimeout(key)
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
                self._checkin(key)

    async def _acquire(self, lock: asyncio.Lock) -> bool:
        """
        Wait up to blocking_timeout for `lock`. False on timeout.

        The acquire runs as its own task so a grant that lands as the
        timeout fires is seen, and a lock granted to a cancelled caller is
        handed back.
        """
        waiter = asyncio.ensure_future(lock.acquire())
        try:
            await asyncio.wait({waiter}, timeout=self.blocking_timeout)
        except BaseException:
            if waiter.done() and not waiter.cancelled():
                lock.release()
            else:
                waiter.cancel()
            raise

        if waiter.done():
            return True
        waiter.cancel()
        return False

    def _checkout(self, key: str) -> asyncio.Lock:
        self._refs[key] = self._refs.get(key, 0) + 1
        return self._locks.setdefault(key, asyncio.Lock())

    def _checkin(self, key: str) -> None:
        self._refs[key] -= 1
        if self._refs[key] == 0:
            del self._refs[key]
            del self._locks[key]

    def active_keys(self) -> list[str]:
        return sorted(self._locks)


class NoopBookingLock(BookingLock):
    """
    No serialization - concurrent requests may race past the capacity checks.
    Only useful for reproducing the race under load tests.
    """

    name = "none"

    @asynccontextmanager
    async def hold(self, keys: Sequence[str]) -> AsyncIterator[None]:
        yield
