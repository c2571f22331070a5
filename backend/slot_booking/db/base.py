"""
Declarative base and shared column mixins.
"""

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    """Server-assigned creation timestamp. Rows are never updated in place."""

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
