"""
Booking lock strategy interface.
Allows swapping between different ways of serializing booking writes.
"""

import re
from abc import ABC, abstractmethod
from datetime import date
from typing import AsyncContextManager, Sequence

from slot_booking.core.dates import week_bounds
from slot_booking.core.logging import mask_phone_number

_WEEK_KEY_RE = re.compile(r"(booking:week:)([^:]+)(?=:)")


class LockTimeout(Exception):
    """Raised when a booking lock could not be acquired in time."""

    def __init__(self, key: str):
        super().__init__(f"Timed out waiting for lock {loggable_lock_key(key)!r}")
        self.key = key


def booking_lock_keys(day: date, phone: str) -> list[str]:
    """
    Keys guarding one booking attempt, in acquisition order.

    The date key covers the slot and daily capacity checks; the phone-week
    key covers the weekly restriction, which spans several dates. Every
    caller takes them in this order, so two requests can never wait on
    each other in a cycle.
    """
    week_start, _ = week_bounds(day)
    return [f"booking:date:{day.isoformat()}", f"booking:week:{phone}:{week_start.isoformat()}"]


def loggable_lock_key(key: str) -> str:
    """`key` with the phone number of a phone-week key masked."""
    return _WEEK_KEY_RE.sub(lambda m: m.group(1) + mask_phone_number(m.group(2)), key)


class BookingLock(ABC):
    """
    Interface for booking write serialization.

    Implementations:
    - NoopBookingLock: no serialization, checks may race
    - LocalBookingLock: asyncio locks, correct within one process
    - RedisBookingLock: distributed locks shared by all workers
    """

    name: str = "abstract"

    @abstractmethod
    def hold(self, keys: Sequence[str]) -> AsyncContextManager[None]:
        """
        Hold every lock in `keys` for the duration of the block.

        Raises:
            LockTimeout: a lock could not be acquired in time
        """
