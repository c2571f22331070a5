"""
Slot Booking API - Main Application Entry Point

A fixed-capacity slot reservation service demonstrating:
- Per-slot (120) and per-day (1200) capacity derived from COUNT queries
- One booking per phone number per calendar week
- Serialized check-and-insert so concurrent requests cannot overbook
- Redis-cached slot status with invalidation on every write
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slot_booking.core.config import get_settings
from slot_booking.core.errors import register_exception_handlers
from slot_booking.core.logging import setup_logging, get_logger
from slot_booking.core.metrics import metrics_endpoint
from slot_booking.api.router import api_router
from slot_booking.api.middleware import RequestLoggingMiddleware
from slot_booking.db.session import create_tables, dispose_engine
from slot_booking.infrastructure.redis_client import get_redis, close_redis
from slot_booking.services.cache_service import get_cache_stats
from slot_booking.services.strategy_factory import get_booking_lock

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        booking_lock=get_booking_lock().name,
    )

    if settings.DB_CREATE_TABLES:
        await create_tables()
        logger.info("database_tables_ready")

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache or distributed locks")

    yield

    await close_redis()
    await dispose_engine()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Slot reservation API with per-slot, per-day and weekly booking limits",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/api/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "booking_lock": get_booking_lock().name,
        "cache": cache_stats,
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "endpoints": {
            "health": "/api/health",
            "slots": "/api/slots/{date}",
            "overall": "/api/slots/status/overall",
            "weekly_status": "/api/user/weekly-status",
            "bookings": "/api/bookings",
            "admin": {
                "login": "/api/admin/login",
                "bookings": "/api/admin/bookings",
                "stats": "/api/admin/stats",
                "export": "/api/admin/export",
            },
        },
    }
