"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .booking_lock import BookingLock, LockTimeout, booking_lock_keys, loggable_lock_key
from .local_lock import LocalBookingLock, NoopBookingLock

__all__ = ['BookingLock', 'LockTimeout', 'booking_lock_keys', 'loggable_lock_key', 'LocalBookingLock', 'NoopBookingLock']
