"""
Redis client initialization and connection management.

The client is created in the application lifespan and kept on
``app.state.redis``. It backs the token blacklist.
"""

import logging

import redis.asyncio as redis
from fastapi import Request

from driveway_hub.app.core.config import Settings

logger = logging.getLogger(__name__)


def build_redis(settings: Settings) -> redis.Redis:
    """Create the async Redis client from settings."""
    return redis.from_url(
        settings.redis_url,
        decode_responses=settings.redis_decode_responses,
    )


async def get_redis(request: Request) -> redis.Redis:
    """
    Get Redis client instance.

    FastAPI dependency; tests override it with an in-memory fake.
    """
    return request.app.state.redis


async def ping_redis(client: redis.Redis) -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await client.ping()
    except redis.RedisError as e:
        logger.warning("Redis ping failed: %s", e)
        return False
