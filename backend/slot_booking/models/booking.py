"""
Booking model: one reserved seat in a time slot on a given date.

Key design decisions:
- Capacity is derived with COUNT queries, there is no denormalized counter
- Composite index on (date, time_slot) serves the per-slot and per-day counts
- Composite index on (phone, date) serves the weekly restriction lookup
- Rows are never updated, only inserted and deleted by admins
"""

from sqlalchemy import Column, Integer, String, Date, Time, Index

from slot_booking.db.base import Base, TimestampMixin


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    purpose = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    time_slot = Column(Time, nullable=False)

    # fetch created_at with the INSERT instead of a follow-up SELECT
    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        Index("ix_bookings_date_time_slot", "date", "time_slot"),
        Index("ix_bookings_phone_date", "phone", "date"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, phone={self.phone}, date={self.date}, slot={self.time_slot})>"
