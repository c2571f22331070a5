"""
Public booking endpoint.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from slot_booking.db.session import get_db
from slot_booking.schemas.booking import BookingCreate, BookingCreatedResponse, BookingResponse
from slot_booking.services.booking_service import create_booking

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Book one seat in a time slot.

    Rejected with 400 when any field is invalid (all problems reported at
    once) and with 409 when the slot is full, the phone number already has
    a booking that week, or the day has reached its limit.
    """
    booking = await create_booking(db, booking_data)
    return BookingCreatedResponse(
        id=booking.id,
        message="Booking created successfully",
        booking=BookingResponse.model_validate(booking),
    )
