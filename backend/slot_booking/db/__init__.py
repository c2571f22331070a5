from slot_booking.db.base import Base, TimestampMixin

__all__ = ["Base", "TimestampMixin"]
