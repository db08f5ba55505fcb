"""Redis connection and the cache in front of per-user entry lists."""

import json
from typing import Any, cast

import redis
from structlog import get_logger

from pain_tracker.config import settings

logger = get_logger(__name__)

ENTRY_LIST_KEY_PREFIX = "pain_entries"

_redis_client: redis.Redis | None = None


def entry_list_key(uid: str) -> str:
    return f"{ENTRY_LIST_KEY_PREFIX}:{uid}"


def get_redis_client() -> redis.Redis:
    """Shared client, created on first use."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username or None,
            password=settings.redis_password or None,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=2,
            health_check_interval=30,
        )
    return _redis_client


async def check_redis_connection() -> bool:
    """Ping Redis; False when it cannot be reached."""
    try:
        return bool(get_redis_client().ping())
    except redis.RedisError:
        return False


def close_redis_connection() -> None:
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """
    JSON values in Redis.

    Redis only speeds up reads, so every call fails open: an outage reads as
    a miss and writes report False instead of raising.
    """

    def __init__(self, redis_client: redis.Redis):
        """Wrap an existing client."""
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        try:
            raw = cast(str | None, self.redis.get(key))
        except redis.RedisError as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_value_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store ``value`` as JSON.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: Expiry in seconds; no expiry when omitted

        Returns:
            Whether the value was written
        """
        payload = json.dumps(value, default=str)
        try:
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
        except redis.RedisError as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False
        return True

    def delete(self, key: str) -> bool:
        try:
            self.redis.delete(key)
        except redis.RedisError as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))
            return False
        return True
