import logging

import redis

from taskboard.config import settings

logger = logging.getLogger(__name__)

# shared by the rate limiter, the redis blob store and the redis event bus
redis_client = redis.Redis.from_url(
    settings.redis_url,
    decode_responses=True,
    socket_connect_timeout=settings.redis_timeout_seconds,
    socket_timeout=settings.redis_timeout_seconds,
    health_check_interval=30,
)

def redis_ping() -> bool:
    try:
        return bool(redis_client.ping())
    except redis.RedisError as e:
        logger.warning("Redis ping failed: %s", e.__class__.__name__)
        return False
