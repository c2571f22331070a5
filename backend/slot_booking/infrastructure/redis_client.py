"""
Redis client shared by the slot status cache and the distributed booking lock.
Separated from business logic; callers treat a None client as "Redis off".
"""

import time
from typing import Optional

import redis.asyncio as redis

from slot_booking.core.config import get_settings
from slot_booking.core.logging import get_logger

logger = get_logger(__name__)


class RedisClient:
    """
    Lazily connected async Redis client, one per process.

    After a failed connect, callers get None without a new attempt until
    REDIS_RETRY_COOLDOWN seconds have passed.
    """

    _instance: Optional[redis.Redis] = None
    _retry_at: float = 0.0

    @classmethod
    async def get_client(cls) -> Optional[redis.Redis]:
        settings = get_settings()
        if not settings.REDIS_ENABLED:
            return None

        if cls._instance is not None:
            return cls._instance
        if time.monotonic() < cls._retry_at:
            return None

        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        try:
            await client.ping()
        except Exception as e:
            cls._retry_at = time.monotonic() + settings.REDIS_RETRY_COOLDOWN
            logger.error("redis_connection_failed", error=str(e), retry_in=settings.REDIS_RETRY_COOLDOWN)
            await client.aclose()
            return None

        cls._instance = client
        cls._retry_at = 0.0
        logger.info("redis_connected", url=settings.REDIS_URL)
        return cls._instance

    @classmethod
    async def close(cls) -> None:
        if cls._instance is not None:
            await cls._instance.aclose()
            cls._instance = None
        cls._retry_at = 0.0


async def get_redis() -> Optional[redis.Redis]:
    return await RedisClient.get_client()


async def close_redis() -> None:
    await RedisClient.close()
