"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from slot_booking.api.routes import admin, bookings, slots

api_router = APIRouter(prefix="/api")
api_router.include_router(slots.router)
api_router.include_router(bookings.router)
api_router.include_router(admin.router)
