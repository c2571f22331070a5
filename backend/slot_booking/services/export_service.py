"""
Spreadsheet export of bookings (xlsx via openpyxl).
"""

from datetime import date, datetime, timezone
from io import BytesIO
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font

from slot_booking.core.dates import format_time_slot
from slot_booking.models.booking import Booking

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

COLUMNS = ["ID", "Name", "Phone", "Purpose", "Location", "Date", "Time Slot", "Created At"]
COLUMN_WIDTHS = [8, 28, 16, 20, 22, 12, 10, 20]


def _excel_datetime(value: Optional[datetime]) -> Optional[datetime]:
    # Excel has no timezone support; store UTC wall time
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def booking_row(booking: Booking) -> list:
    return [
        booking.id,
        booking.name,
        booking.phone,
        booking.purpose,
        booking.location,
        booking.date,
        format_time_slot(booking.time_slot),
        _excel_datetime(booking.created_at),
    ]


def build_workbook(bookings: Iterable[Booking]) -> bytes:
    """Serialize bookings into a single-sheet xlsx document."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Bookings"

    sheet.append(COLUMNS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for index, width in enumerate(COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[sheet.cell(row=1, column=index).column_letter].width = width

    for booking in bookings:
        sheet.append(booking_row(booking))

    for cell in sheet["F"][1:]:
        cell.number_format = "yyyy-mm-dd"
    for cell in sheet["H"][1:]:
        cell.number_format = "yyyy-mm-dd hh:mm:ss"

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_filename(
    start_date: Optional[date],
    end_date: Optional[date],
    now: Optional[datetime] = None,
) -> str:
    """bookings_{start|all}_{end|all}_{YYYY-MM-DD_HH-mm}.xlsx"""
    now = now or datetime.now()
    start = start_date.isoformat() if start_date else "all"
    end = end_date.isoformat() if end_date else "all"
    return f"bookings_{start}_{end}_{now.strftime('%Y-%m-%d_%H-%M')}.xlsx"
