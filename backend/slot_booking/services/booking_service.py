"""
Booking service: the gated creation flow.

CONCURRENCY STRATEGY: Serialized check-and-insert
=================================================

Problem:
  Capacity and the weekly restriction are COUNT queries followed by an
  INSERT. Two requests for the last seat in a slot both read 119, both
  insert, and the slot ends at 121. The same race lets one phone book
  two dates of the same week, or a day pass 1200.

Solution:
  Every booking attempt holds two locks while it checks and inserts:

  1. booking:date:{date}               - slot and daily capacity
  2. booking:week:{phone}:{monday}     - weekly restriction

  The insert is committed before the locks are released, so the next
  request for the same date or phone-week counts the new row.

  The lock implementation is pluggable (see strategy_factory):
  asyncio locks for a single worker, Redis locks across workers.

Check order (each a hard gate, first failure wins):
  slot capacity -> weekly restriction -> daily capacity -> insert
"""

import time

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from slot_booking.core.config import get_settings
from slot_booking.core.dates import parse_time_slot
from slot_booking.core.logging import get_logger
from slot_booking.core.metrics import booking_latency, lock_wait, record_booking_attempt
from slot_booking.models.booking import Booking
from slot_booking.schemas.booking import BookingCreate
from slot_booking.services.cache_service import invalidate_slot_status
from slot_booking.services.capacity_service import count_daily_bookings, count_slot_bookings
from slot_booking.services.interfaces.booking_lock import LockTimeout, booking_lock_keys, loggable_lock_key
from slot_booking.services.restriction_service import count_weekly_bookings
from slot_booking.services.strategy_factory import get_booking_lock

logger = get_logger(__name__)


def _reject(reason: str, detail: str, **context) -> HTTPException:
    logger.warning("booking_rejected", reason=reason, **context)
    record_booking_attempt(reason)
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


async def _check_and_insert(db: AsyncSession, booking_data: BookingCreate) -> Booking:
    settings = get_settings()
    day = booking_data.date
    slot = booking_data.time_slot

    slot_count = await count_slot_bookings(db, day, slot)
    if slot_count >= settings.SLOT_CAPACITY:
        raise _reject(
            "slot_full",
            f"This time slot is fully booked ({settings.SLOT_CAPACITY}/{settings.SLOT_CAPACITY} capacity reached)",
            date=str(day),
            time_slot=slot,
            count=slot_count,
        )

    weekly_count = await count_weekly_bookings(db, booking_data.phone, day)
    if weekly_count > 0:
        raise _reject(
            "weekly_limit",
            "You have already booked a slot this week. Only one booking per week is allowed.",
            date=str(day),
            phone=booking_data.phone,
            weekly_bookings=weekly_count,
        )

    daily_count = await count_daily_bookings(db, day)
    if daily_count >= settings.DAILY_CAPACITY:
        raise _reject(
            "daily_limit",
            f"Daily booking limit reached ({settings.DAILY_CAPACITY} bookings)",
            date=str(day),
            count=daily_count,
        )

    booking = Booking(
        name=booking_data.name,
        phone=booking_data.phone,
        purpose=booking_data.purpose,
        location=booking_data.location,
        date=day,
        time_slot=parse_time_slot(slot),
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    return booking


async def create_booking(db: AsyncSession, booking_data: BookingCreate) -> Booking:
    """
    Create a booking if the slot, the phone's week and the day all have room.
    Raises 409 on any capacity or restriction conflict.
    """
    lock = get_booking_lock()
    keys = booking_lock_keys(booking_data.date, booking_data.phone)
    started = time.perf_counter()

    try:
        async with lock.hold(keys):
            lock_wait.labels(strategy=lock.name).observe(time.perf_counter() - started)
            booking = await _check_and_insert(db, booking_data)
    except LockTimeout as e:
        raise _reject(
            "busy",
            "Booking system is busy. Please try again.",
            date=str(booking_data.date),
            phone=booking_data.phone,
            lock_key=loggable_lock_key(e.key),
        )
    finally:
        booking_latency.observe(time.perf_counter() - started)

    await invalidate_slot_status([booking.date])
    record_booking_attempt("success")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        date=str(booking.date),
        time_slot=booking_data.time_slot,
        location=booking.location,
    )
    return booking
