"""
Admin endpoints: login, booking list, deletion, export and stats.
Everything except /login requires a bearer token from /login.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from slot_booking.core.config import get_settings
from slot_booking.core.dates import parse_iso_date
from slot_booking.core.logging import get_logger
from slot_booking.core.metrics import exports_generated
from slot_booking.core.security import ADMIN_ROLE, create_access_token, get_current_admin, verify_admin_credentials
from slot_booking.db.session import get_db
from slot_booking.schemas.auth import AdminLogin, Token
from slot_booking.schemas.booking import (
    BookingDeletedResponse,
    BookingResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
    StatsResponse,
    TicketResponse,
)
from slot_booking.services import admin_service
from slot_booking.services.export_service import XLSX_MEDIA_TYPE, build_workbook, export_filename

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"])


def _query_date(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name}: expected YYYY-MM-DD",
        )


@router.post("/login", response_model=Token)
async def login(login_data: AdminLogin):
    """Exchange the admin credentials for a bearer token."""
    if not verify_admin_credentials(login_data.username, login_data.password):
        logger.warning("admin_login_failed", username=login_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    settings = get_settings()
    token = create_access_token(data={"sub": login_data.username, "role": ADMIN_ROLE})
    logger.info("admin_logged_in", username=login_data.username)
    return Token(access_token=token, expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)


@router.get("/bookings", response_model=list[BookingResponse])
async def list_bookings_endpoint(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    search: Optional[str] = Query(None, max_length=255),
    admin: str = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """List bookings, optionally within an inclusive date range and matching a search term."""
    return await admin_service.list_bookings(
        db,
        start_date=_query_date(start_date, "startDate"),
        end_date=_query_date(end_date, "endDate"),
        search=search.strip() if search else None,
    )


@router.get("/bookings/{booking_id}/ticket", response_model=TicketResponse)
async def booking_ticket_endpoint(
    booking_id: int,
    admin: str = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Data the dashboard encodes into a booking's QR code."""
    return await admin_service.build_ticket(db, booking_id)


@router.delete("/bookings/{booking_id}", response_model=BookingDeletedResponse)
async def delete_booking_endpoint(
    booking_id: int,
    admin: str = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    deleted = await admin_service.delete_booking(db, booking_id)
    return BookingDeletedResponse(message="Booking deleted successfully", deleted_booking=deleted)


@router.delete("/bookings", response_model=BulkDeleteResponse)
async def delete_bookings_endpoint(
    payload: BulkDeleteRequest,
    admin: str = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete several bookings at once. Ids that do not exist are skipped."""
    deleted, count = await admin_service.delete_bookings(db, payload.ids)
    return BulkDeleteResponse(
        message=f"{count} booking(s) deleted successfully",
        deleted_bookings=deleted,
        deleted_count=count,
    )


@router.get("/export")
async def export_bookings_endpoint(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    admin: str = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Download the filtered booking list as an xlsx attachment."""
    start = _query_date(start_date, "startDate")
    end = _query_date(end_date, "endDate")
    bookings = await admin_service.list_bookings(db, start_date=start, end_date=end)

    content = build_workbook(bookings)
    filename = export_filename(start, end)
    exports_generated.inc()
    logger.info("bookings_exported", rows=len(bookings), filename=filename)

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/stats", response_model=StatsResponse)
async def stats_endpoint(
    date_param: Optional[str] = Query(None, alias="date"),
    admin: str = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await admin_service.get_stats(db, _query_date(date_param, "date"))
