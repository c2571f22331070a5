"""
Exception handlers that shape error responses.

- Request validation failures become 400 with every failing field listed.
- Database failures are logged and surfaced as a generic 500.
HTTPExceptions raised by services keep FastAPI's default `{"detail": ...}`.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from slot_booking.core.logging import get_logger

logger = get_logger(__name__)


def _field_name(loc: tuple) -> str:
    # ("body", "phone") -> "phone"; ("path", "date") -> "date"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


def _clean_message(message: str) -> str:
    # pydantic prefixes custom ValueError messages with "Value error, "
    return message.removeprefix("Value error, ")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": _clean_message(err.get("msg", ""))}
        for err in exc.errors()
    ]
    logger.info("validation_failed", fields=[e["field"] for e in errors])
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Validation failed", "errors": errors},
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("database_error", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Database error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
