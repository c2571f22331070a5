"""
Structured logging configuration using structlog.

Outputs JSON in production, pretty-printed in development. Request context
(request_id, method, path) is merged from contextvars, and phone numbers
are masked before any renderer sees them.
"""

import logging
import sys

import structlog
from structlog.typing import EventDict, WrappedLogger

from slot_booking.core.config import get_settings

_configured = False


def mask_phone_number(phone: str) -> str:
    if len(phone) <= 4:
        return phone
    return "*" * (len(phone) - 4) + phone[-4:]


def mask_phone(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Keep only the last four digits of a `phone` field."""
    phone = event_dict.get("phone")
    if isinstance(phone, str):
        event_dict["phone"] = mask_phone_number(phone)
    return event_dict


def _build_processors(mask_phones: bool) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if mask_phones:
        processors.append(mask_phone)
    return processors


def setup_logging() -> None:
    """Route structlog and stdlib records through one stdout handler. Idempotent."""
    global _configured
    if _configured:
        return

    settings = get_settings()
    processors = _build_processors(settings.LOG_MASK_PHONES)

    if settings.ENVIRONMENT == "production":
        processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # uvicorn's access log duplicates request_completed
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
