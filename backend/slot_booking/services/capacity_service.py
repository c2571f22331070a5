"""
Capacity evaluator: how many bookings exist per slot and per day.

All figures are COUNT queries over the bookings table; nothing is
denormalized. Slot keys are normalized to HH:MM because drivers render
TIME columns differently (time objects, "09:00:00", ...).
"""

from datetime import date, datetime, timedelta

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from slot_booking.core.config import get_settings
from slot_booking.core.dates import format_time_slot, parse_time_slot
from slot_booking.models.booking import Booking
from slot_booking.schemas.slot import DaySlotStatus, OverallStatus, SlotStatus


async def count_bookings_by_slot(db: AsyncSession, day: date) -> dict[str, int]:
    """Bookings per time slot on `day`, keyed by HH:MM."""
    result = await db.execute(
        select(Booking.time_slot, func.count(Booking.id))
        .where(Booking.date == day)
        .group_by(Booking.time_slot)
    )
    counts: dict[str, int] = {}
    for time_slot, count in result.all():
        key = format_time_slot(time_slot)
        counts[key] = counts.get(key, 0) + count
    return counts


async def count_slot_bookings(db: AsyncSession, day: date, time_slot: str) -> int:
    """
    Bookings in one HH:MM slot on `day`. Stored times with seconds count
    toward their minute, the same as in count_bookings_by_slot.
    """
    start = parse_time_slot(time_slot)
    query = select(func.count(Booking.id)).where(Booking.date == day, Booking.time_slot >= start)
    end = (datetime.combine(day, start) + timedelta(minutes=1)).time()
    if end > start:
        query = query.where(Booking.time_slot < end)
    result = await db.execute(query)
    return result.scalar_one()


async def count_daily_bookings(db: AsyncSession, day: date) -> int:
    result = await db.execute(select(func.count(Booking.id)).where(Booking.date == day))
    return result.scalar_one()


async def get_slot_status(db: AsyncSession, day: date) -> DaySlotStatus:
    """
    Availability of every configured slot on `day`.

    totalBookings counts every row on the date, including rows stored under
    a slot that is no longer offered.
    """
    settings = get_settings()
    capacity = settings.SLOT_CAPACITY
    counts = await count_bookings_by_slot(db, day)

    slot_status = []
    for slot in settings.TIME_SLOTS:
        booked = counts.get(slot, 0)
        slot_status.append(
            SlotStatus(
                time=slot,
                booking_count=booked,
                max_capacity=capacity,
                is_available=booked < capacity,
                is_fully_booked=booked >= capacity,
                available_spots=max(0, capacity - booked),
            )
        )

    return DaySlotStatus(
        date=day,
        slot_status=slot_status,
        available_slots=[s.time for s in slot_status if s.is_available],
        fully_booked_slots=[s.time for s in slot_status if s.is_fully_booked],
        all_slots=list(settings.TIME_SLOTS),
        total_bookings=sum(counts.values()),
        max_bookings=settings.DAILY_CAPACITY,
    )


async def get_overall_status(db: AsyncSession, day: date) -> OverallStatus:
    settings = get_settings()
    total = await count_daily_bookings(db, day)
    max_slots = settings.DAILY_CAPACITY
    return OverallStatus(
        date=day,
        available_slots=max(0, max_slots - total),
        total_bookings=total,
        max_slots=max_slots,
        utilization_rate=f"{total / max_slots * 100:.1f}",
    )
