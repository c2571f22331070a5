from slot_booking.models.booking import Booking

__all__ = ["Booking"]
