"""
Public availability endpoints polled by the booking form.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from slot_booking.core.config import get_settings
from slot_booking.core.dates import parse_iso_date, parse_optional_date
from slot_booking.core.logging import get_logger
from slot_booking.db.session import get_db
from slot_booking.schemas.slot import BookingOptions, DaySlotStatus, OverallStatus, WeeklyStatus
from slot_booking.services.cache_service import (
    get_cached_slot_status,
    get_slot_status_version,
    set_cached_slot_status,
)
from slot_booking.services.capacity_service import get_overall_status, get_slot_status
from slot_booking.services.restriction_service import get_weekly_status

logger = get_logger(__name__)
router = APIRouter(tags=["Slots"])


@router.get("/slots/status/overall", response_model=OverallStatus)
async def overall_status_endpoint(
    date_param: Optional[str] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """Day-level capacity. A missing or malformed date means today."""
    day = parse_optional_date(date_param, default=date.today())
    return await get_overall_status(db, day)


@router.get("/slots/{date_str}", response_model=DaySlotStatus)
async def slot_status_endpoint(date_str: str, db: AsyncSession = Depends(get_db)):
    """
    Per-slot availability for one date.
    Results are cached in Redis briefly and invalidated on every booking
    or deletion for that date.
    """
    try:
        day = parse_iso_date(date_str)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format")

    cached = await get_cached_slot_status(day)
    if cached:
        return DaySlotStatus.model_validate(cached)

    version = await get_slot_status_version(day)
    slot_status = await get_slot_status(db, day)
    await set_cached_slot_status(day, slot_status.model_dump(mode="json", by_alias=True), version)
    logger.debug("slot_status_computed", date=str(day), total=slot_status.total_bookings)
    return slot_status


@router.get("/user/weekly-status", response_model=WeeklyStatus)
async def weekly_status_endpoint(
    phone: Optional[str] = Query(None),
    date_param: Optional[str] = Query(None, alias="date"),
    db: AsyncSession = Depends(get_db),
):
    """Advisory pre-check: has this phone already booked in the date's week?"""
    if not phone or not phone.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Phone number is required")

    day = parse_optional_date(date_param, default=date.today())
    return await get_weekly_status(db, phone.strip(), day)


@router.get("/booking-options", response_model=BookingOptions)
async def booking_options_endpoint():
    """Choices offered by the booking form."""
    settings = get_settings()
    return BookingOptions(
        time_slots=settings.TIME_SLOTS,
        purposes=settings.PURPOSES,
        locations=settings.LOCATIONS,
        slot_capacity=settings.SLOT_CAPACITY,
        max_slots_per_day=settings.DAILY_CAPACITY,
        company=settings.COMPANY_NAME,
    )
