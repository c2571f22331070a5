from slot_booking.schemas.auth import AdminLogin, Token
from slot_booking.schemas.booking import (
    BookingCreate, BookingResponse, BookingCreatedResponse, BookingDeletedResponse,
    BulkDeleteRequest, BulkDeleteResponse, StatsResponse, TicketResponse,
)
from slot_booking.schemas.slot import SlotStatus, DaySlotStatus, OverallStatus, WeeklyStatus, BookingOptions

__all__ = [
    "AdminLogin", "Token",
    "BookingCreate", "BookingResponse", "BookingCreatedResponse", "BookingDeletedResponse",
    "BulkDeleteRequest", "BulkDeleteResponse", "StatsResponse", "TicketResponse",
    "SlotStatus", "DaySlotStatus", "OverallStatus", "WeeklyStatus", "BookingOptions",
]
