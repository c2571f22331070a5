"""
Admin service: listing, deleting and summarizing bookings.
"""

from datetime import date, datetime, timezone
from typing import Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from slot_booking.core.config import get_settings
from slot_booking.core.dates import format_time_slot
from slot_booking.core.logging import get_logger
from slot_booking.core.metrics import bookings_deleted
from slot_booking.models.booking import Booking
from slot_booking.schemas.booking import BookingResponse, StatsResponse, TicketResponse
from slot_booking.services.cache_service import invalidate_slot_status
from slot_booking.services.capacity_service import get_overall_status

logger = get_logger(__name__)


def _filtered_query(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
):
    query = select(Booking)
    if start_date:
        query = query.where(Booking.date >= start_date)
    if end_date:
        query = query.where(Booking.date <= end_date)
    if search:
        query = query.where(
            or_(
                Booking.name.icontains(search, autoescape=True),
                Booking.purpose.icontains(search, autoescape=True),
                Booking.location.icontains(search, autoescape=True),
            )
        )
    return query.order_by(Booking.date.desc(), Booking.time_slot.asc(), Booking.id.asc())


async def list_bookings(
    db: AsyncSession,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> list[Booking]:
    """
    Bookings within the inclusive [start_date, end_date] range, newest date
    first and slots in chronological order within a day.
    """
    result = await db.execute(_filtered_query(start_date, end_date, search))
    return list(result.scalars().all())


async def get_booking(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()

    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found",
        )
    return booking


async def delete_booking(db: AsyncSession, booking_id: int) -> BookingResponse:
    """Delete one booking. Raises 404 if it does not exist."""
    booking = await get_booking(db, booking_id)
    snapshot = BookingResponse.model_validate(booking)

    await db.delete(booking)
    await db.commit()

    await invalidate_slot_status([snapshot.date])
    bookings_deleted.inc()
    logger.info("booking_deleted", booking_id=booking_id, date=str(snapshot.date))
    return snapshot


async def delete_bookings(db: AsyncSession, ids: Sequence[int]) -> tuple[list[BookingResponse], int]:
    """Delete every listed booking that exists; unknown ids are ignored."""
    unique_ids = sorted(set(ids))
    result = await db.execute(
        select(Booking).where(Booking.id.in_(unique_ids)).order_by(Booking.id)
    )
    snapshots = [BookingResponse.model_validate(b) for b in result.scalars().all()]

    delete_result = await db.execute(
        delete(Booking).where(Booking.id.in_(unique_ids)).execution_options(synchronize_session=False)
    )
    await db.commit()
    deleted_count = delete_result.rowcount

    await invalidate_slot_status({s.date for s in snapshots})
    bookings_deleted.inc(deleted_count)
    logger.info(
        "bookings_deleted",
        requested=len(unique_ids),
        deleted=deleted_count,
        missing=sorted(set(unique_ids) - {s.id for s in snapshots}),
    )
    return snapshots, deleted_count


async def get_stats(db: AsyncSession, day: Optional[date] = None) -> StatsResponse:
    """Booking totals for one date, or across all dates when none is given."""
    settings = get_settings()
    query = select(func.count(Booking.id))
    if day:
        query = query.where(Booking.date == day)
    total = (await db.execute(query)).scalar_one()

    return StatsResponse(
        total_bookings=total,
        max_bookings=settings.DAILY_CAPACITY,
        available_bookings=max(0, settings.DAILY_CAPACITY - total),
    )


async def build_ticket(db: AsyncSession, booking_id: int) -> TicketResponse:
    """QR code payload for a booking, with the day's remaining capacity."""
    settings = get_settings()
    booking = await get_booking(db, booking_id)
    overall = await get_overall_status(db, booking.date)

    return TicketResponse(
        booking_id=booking.id,
        name=booking.name,
        phone=booking.phone,
        date=booking.date,
        time_slot=format_time_slot(booking.time_slot),
        purpose=booking.purpose,
        location=booking.location,
        created_at=booking.created_at,
        company=settings.COMPANY_NAME,
        qr_generated_at=datetime.now(timezone.utc),
        available_slots=overall.available_slots,
        total_slots=overall.max_slots,
    )
