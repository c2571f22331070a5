"""
Booking lock strategy factory.
Configures which write serialization strategy to use.
"""

from typing import Optional

from slot_booking.core.config import get_settings
from slot_booking.services.interfaces.booking_lock import BookingLock
from slot_booking.services.interfaces.local_lock import LocalBookingLock, NoopBookingLock
from slot_booking.services.lock_service import RedisBookingLock


def get_booking_lock_strategy() -> BookingLock:
    """
    Build the configured strategy from BOOKING_LOCK_STRATEGY:
    - local: LocalBookingLock (single worker, default)
    - redis: RedisBookingLock (multiple workers, falls back to local)
    - none: NoopBookingLock (no serialization)
    """
    settings = get_settings()
    strategy = settings.BOOKING_LOCK_STRATEGY.lower()
    local = LocalBookingLock(blocking_timeout=settings.LOCK_BLOCKING_TIMEOUT)

    if strategy == "redis":
        return RedisBookingLock(
            fallback=local,
            timeout=settings.LOCK_TIMEOUT,
            blocking_timeout=settings.LOCK_BLOCKING_TIMEOUT,
        )
    if strategy == "none":
        return NoopBookingLock()
    return local


_lock: Optional[BookingLock] = None


def get_booking_lock() -> BookingLock:
    """Get booking lock singleton."""
    global _lock
    if _lock is None:
        _lock = get_booking_lock_strategy()
    return _lock


def reset_booking_lock() -> None:
    global _lock
    _lock = None
