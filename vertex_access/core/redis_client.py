"""Redis connection used for cross-worker role cache invalidation.

Redis is optional. With REDIS_URL unset (or "memory://") every helper here
returns None and each worker relies on its own invalidations plus the cache
TTL.
"""

import logging

import redis

from vertex_access.core.config import settings

logger = logging.getLogger(__name__)

REDIS_DISABLED_URL = "memory://"
REDIS_TIMEOUT_SECONDS = 2.0
REDIS_HEALTH_CHECK_SECONDS = 30

_client: redis.Redis | None = None


def get_redis_url() -> str | None:
    """Configured Redis URL, or None when cross-worker invalidation is off."""
    url = (settings.REDIS_URL or "").strip()
    if not url or url.lower() == REDIS_DISABLED_URL:
        return None
    return url


def get_redis_client() -> redis.Redis | None:
    """Process-wide client, created on first use."""
    global _client
    url = get_redis_url()
    if url is None:
        return None
    if _client is None:
        _client = redis.Redis.from_url(
            url,
            socket_connect_timeout=REDIS_TIMEOUT_SECONDS,
            socket_timeout=REDIS_TIMEOUT_SECONDS,
            health_check_interval=REDIS_HEALTH_CHECK_SECONDS,
            retry_on_timeout=True,
        )
        logger.info("Redis client created for role cache invalidation")
    return _client


def close_redis_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
