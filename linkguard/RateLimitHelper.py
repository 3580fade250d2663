import logging
from dataclasses import dataclass
from fastapi import Request
import redis.exceptions

from linkguard.core.config import Settings

logger = logging.getLogger(__name__)

ADMIN_PATH_PREFIX = "/api/v1/admin"


@dataclass(frozen=True)
class RateLimitConfig:
    limit: int = 100
    window: int = 60
    enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimitConfig":
        return cls(
            limit=settings.RATE_LIMIT_LIMIT,
            window=settings.RATE_LIMIT_WINDOW,
            enabled=settings.RATE_LIMIT_ENABLED,
        )


def get_client_ip(request: Request) -> str:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def is_limited_path(path: str) -> bool:
    return path == "/shorten" or path.startswith(ADMIN_PATH_PREFIX)


def check_rate_limit(redis_client, key: str, config: RateLimitConfig):
    """Fixed window counter. Returns None when Redis is down (fail open)."""
    try:
        current = redis_client.get(key)
    except redis.exceptions.RedisError:
        logger.warning("Redis unavailable. Rate limiting skipped (fail open).")
        return None

    if current and int(current) >= config.limit:
        return False  # Limit exceeded

    try:
        pipe = redis_client.pipeline()
        pipe.incr(key, 1)
        if not current:
            pipe.expire(key, config.window)
        pipe.execute()
    except redis.exceptions.RedisError:
        logger.warning("Redis unavailable while counting request for %s (fail open).", key)
        return None
    return True
