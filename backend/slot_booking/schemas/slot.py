"""
Pydantic schemas for slot availability and weekly status responses.
"""

import datetime

from slot_booking.schemas.common import CamelModel


class SlotStatus(CamelModel):
    time: str
    booking_count: int
    max_capacity: int
    is_available: bool
    is_fully_booked: bool
    available_spots: int


class DaySlotStatus(CamelModel):
    date: datetime.date
    slot_status: list[SlotStatus]
    available_slots: list[str]
    fully_booked_slots: list[str]
    all_slots: list[str]
    total_bookings: int
    max_bookings: int


class OverallStatus(CamelModel):
    date: datetime.date
    available_slots: int
    total_bookings: int
    max_slots: int
    utilization_rate: str


class WeeklyStatus(CamelModel):
    has_booked_this_week: bool
    weekly_bookings: int
    can_book: bool
    message: str


class BookingOptions(CamelModel):
    time_slots: list[str]
    purposes: list[str]
    locations: list[str]
    slot_capacity: int
    max_slots_per_day: int
    company: str
