"""
Weekly restriction: one booking per phone number per calendar week.

Weeks run Monday to Sunday. Both the candidate date and stored dates are
truncated with the same rule, expressed here as a date range so the
(phone, date) index serves the lookup.
"""

from datetime import date

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from slot_booking.core.dates import week_bounds
from slot_booking.models.booking import Booking
from slot_booking.schemas.slot import WeeklyStatus


async def count_weekly_bookings(db: AsyncSession, phone: str, day: date) -> int:
    week_start, week_end = week_bounds(day)
    result = await db.execute(
        select(func.count(Booking.id)).where(
            Booking.phone == phone,
            Booking.date.between(week_start, week_end),
        )
    )
    return result.scalar_one()


async def get_weekly_status(db: AsyncSession, phone: str, day: date) -> WeeklyStatus:
    weekly = await count_weekly_bookings(db, phone, day)
    booked = weekly > 0
    return WeeklyStatus(
        has_booked_this_week=booked,
        weekly_bookings=weekly,
        can_book=not booked,
        message=(
            "You have already booked a slot this week"
            if booked
            else "You can book a slot this week"
        ),
    )
