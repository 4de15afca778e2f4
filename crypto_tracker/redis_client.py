"""
Redis client module for CryptoTracker.
Backs the favorites/theme key-value store.
The connection is created lazily and dropped to None when Redis is unreachable.
"""
import logging
from typing import Optional

import redis

from .config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


def _create_client() -> Optional[redis.Redis]:
    try:
        pool = redis.ConnectionPool(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
            decode_responses=True,
            max_connections=10,
            retry_on_timeout=True,
            health_check_interval=30,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        client = redis.Redis(connection_pool=pool)
        client.ping()
        logger.info("✅ Redis connection established")
        return client
    except (redis.ConnectionError, redis.TimeoutError) as e:
        logger.warning(f"⚠️ Redis connection failed: {e}. Preferences will not be persisted.")
        return None


def get_redis() -> Optional[redis.Redis]:
    """
    Get Redis client instance.
    Returns None if Redis is unavailable (graceful degradation).

    Usage:
        redis_client = get_redis()
        if redis_client:
            redis_client.set("key", "value")
        else:
            # Keep state in memory only
            pass
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = _create_client()
        return _redis_client

    try:
        _redis_client.ping()
        return _redis_client
    except (redis.ConnectionError, redis.TimeoutError) as e:
        logger.warning(f"⚠️ Redis connection lost: {e}. Preferences will not be persisted.")
        return None
