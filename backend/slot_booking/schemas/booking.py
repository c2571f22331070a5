"""
Pydantic schemas for booking-related request/response validation.

BookingCreate reports every failing field at once; the validation
exception handler turns the collected errors into a single 400 response.
"""

import datetime
import re
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from slot_booking.core.config import get_settings
from slot_booking.core.dates import TIME_SLOT_RE, format_time_slot, parse_iso_date
from slot_booking.schemas.common import CamelModel

PHONE_RE = re.compile(r"^[+]?[1-9][0-9]{0,15}$")
MAX_TEXT_LENGTH = 255


class BookingCreate(BaseModel):
    name: str
    phone: str
    purpose: str
    location: str
    date: datetime.date
    time_slot: str

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = value.strip()
        if not 2 <= len(value) <= MAX_TEXT_LENGTH:
            raise ValueError("Name must be between 2 and 255 characters long")
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        value = value.strip()
        if not PHONE_RE.fullmatch(value):
            raise ValueError("Must be a valid phone number")
        return value

    @field_validator("purpose", "location")
    @classmethod
    def check_required_text(cls, value: str, info: ValidationInfo) -> str:
        value = value.strip()
        label = info.field_name.capitalize()
        if not value:
            raise ValueError(f"{label} is required")
        if len(value) > MAX_TEXT_LENGTH:
            raise ValueError(f"{label} must be at most {MAX_TEXT_LENGTH} characters long")
        return value

    @field_validator("date", mode="before")
    @classmethod
    def check_date(cls, value):
        if isinstance(value, datetime.date):
            return value
        try:
            return parse_iso_date(value)
        except ValueError:
            raise ValueError("Must be a valid date")

    @field_validator("time_slot")
    @classmethod
    def check_time_slot(cls, value: str) -> str:
        value = value.strip()
        if not TIME_SLOT_RE.match(value):
            raise ValueError("Must be a valid time slot")
        slot = format_time_slot(value)
        allowed = get_settings().TIME_SLOTS
        if slot not in allowed:
            raise ValueError(f"Time slot must be one of: {', '.join(allowed)}")
        return slot


class BookingResponse(BaseModel):
    id: int
    name: str
    phone: str
    purpose: str
    location: str
    date: datetime.date
    time_slot: str
    created_at: Optional[datetime.datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("time_slot", mode="before")
    @classmethod
    def normalize_time_slot(cls, value):
        return format_time_slot(value)


class BookingCreatedResponse(BaseModel):
    id: int
    message: str
    booking: BookingResponse


class BookingDeletedResponse(CamelModel):
    message: str
    deleted_booking: BookingResponse


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)


class BulkDeleteResponse(CamelModel):
    message: str
    deleted_bookings: list[BookingResponse]
    deleted_count: int


class StatsResponse(CamelModel):
    total_bookings: int
    max_bookings: int
    available_bookings: int


class TicketResponse(BaseModel):
    """Payload a client encodes into the booking's QR code."""

    booking_id: int
    name: str
    phone: str
    date: datetime.date
    time_slot: str
    purpose: str
    location: str
    created_at: Optional[datetime.datetime]
    company: str
    qr_generated_at: datetime.datetime
    booking_status: str = "confirmed"
    available_slots: int
    total_slots: int
