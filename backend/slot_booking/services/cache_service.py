"""
Redis caching service for per-date slot status.

CACHING STRATEGY
================

What we cache:
  - The GET /api/slots/{date} response for one date (JSON-serialized)
  - Cache key pattern: "slots:status:{YYYY-MM-DD}"

Why:
  - The booking form polls slot status for the selected date on a fixed
    interval, so the same grouped COUNT query runs over and over
  - The answer only changes when a booking for that date is created or deleted

Invalidation strategy:
  - On booking: bump "slots:version:{date}" and delete the status key
  - On admin delete: the same for every date that lost a row
  - A poll reads the version before counting and stores its result with a
    compare-and-set script, so a result counted before a write can never
    land in the cache after that write invalidated it
  - TTL-based expiry as safety net (SLOT_CACHE_TTL seconds)

Booking creation never reads from this cache; the capacity checks always
count rows in the database.

All operations fail open: a Redis error is logged and treated as a miss.
"""

import json
import os
from datetime import date
from typing import Iterable, Optional

from slot_booking.core.config import get_settings
from slot_booking.core.logging import get_logger
from slot_booking.core.metrics import record_cache_operation
from slot_booking.infrastructure.redis_client import get_redis

logger = get_logger(__name__)

# Load Lua script
SCRIPT_PATH = os.path.join(os.path.dirname(__file__), '../infrastructure/slot_status_cas.lua')
with open(SCRIPT_PATH, 'r') as f:
    SET_IF_CURRENT_SCRIPT = f.read()

# Outlives any status entry, so a version never resets under a poll in flight
VERSION_TTL = 24 * 60 * 60


def _make_slot_status_key(day: date) -> str:
    return f"slots:status:{day.isoformat()}"


def _make_version_key(day: date) -> str:
    return f"slots:version:{day.isoformat()}"


async def get_cached_slot_status(day: date) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = _make_slot_status_key(day)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def get_slot_status_version(day: date) -> Optional[str]:
    """
    Write counter for `day`. Read it before counting rows and pass it to
    set_cached_slot_status. None means the result must not be cached.
    """
    client = await get_redis()
    if not client:
        return None

    try:
        return await client.get(_make_version_key(day)) or "0"
    except Exception as e:
        logger.error("cache_version_error", date=day.isoformat(), error=str(e))
        return None


async def set_cached_slot_status(day: date, data: dict, version: Optional[str]) -> bool:
    """
    Cache `data` unless a booking or deletion for `day` has bumped the
    version since it was read. Returns True if the entry was stored.
    """
    if version is None:
        return False
    client = await get_redis()
    if not client:
        return False

    settings = get_settings()
    key = _make_slot_status_key(day)
    try:
        script = client.register_script(SET_IF_CURRENT_SCRIPT)
        stored = await script(
            keys=[_make_version_key(day), key],
            args=[version, settings.SLOT_CACHE_TTL, json.dumps(data, default=str)],
        )
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))
        return False

    if stored:
        logger.debug("cache_set", key=key, ttl=settings.SLOT_CACHE_TTL)
    else:
        logger.debug("cache_set_skipped", key=key, version=version)
    return bool(stored)


async def invalidate_slot_status(days: Iterable[date]) -> None:
    """Bump the version of every date, then drop its cached status."""
    client = await get_redis()
    if not client:
        return

    days = sorted(set(days))
    if not days:
        return

    keys = [_make_slot_status_key(d) for d in days]
    try:
        for day in days:
            version_key = _make_version_key(day)
            await client.incr(version_key)
            await client.expire(version_key, VERSION_TTL)
        deleted = await client.delete(*keys)
        logger.info("cache_invalidated", keys=keys, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", keys=keys, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
