"""
Slot Booking API: fixed-capacity daily slot reservations with a
once-per-week-per-phone rule and an admin dashboard backend.
"""

__version__ = "1.0.0"
