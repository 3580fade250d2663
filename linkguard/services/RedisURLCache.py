import logging
from datetime import datetime
from typing import Optional

import redis.exceptions

from linkguard.db.Models.models import UrlMapping, utcnow
from linkguard.utils.encoding import normalize_short_code

logger = logging.getLogger(__name__)
CACHE_TTL = 86400


class RedisURLCache:
    """Redirect cache for live links. Redis outages fail open."""

    def __init__(self, client, ttl: int = CACHE_TTL, enabled: bool = True):
        self.client = client
        self.ttl = ttl
        self.enabled = enabled

    @staticmethod
    def key(short_code: str) -> str:
        return f"url:{normalize_short_code(short_code)}"

    def get(self, short_code: str) -> Optional[str]:
        if not self.enabled:
            return None
        try:
            cached_url = self.client.get(self.key(short_code))
        except redis.exceptions.RedisError:
            logger.warning(f"Redis unavailable reading {short_code}")
            return None

        if cached_url:
            cached_decoded = cached_url.decode() if isinstance(cached_url, (bytes, bytearray)) else str(cached_url)
            logger.info(f"Redirect cache HIT for {short_code} -> {cached_decoded[:50]}")
            return cached_decoded
        return None

    def ttl_ms(self, mapping: UrlMapping, now: Optional[datetime] = None) -> int:
        """Milliseconds the entry may live; never past the expiry instant."""
        ttl_ms = self.ttl * 1000
        if mapping.intended_expiry_date is not None:
            remaining = mapping.intended_expiry_date - (now or utcnow())
            ttl_ms = min(ttl_ms, int(remaining.total_seconds() * 1000))
        return ttl_ms

    def put(self, mapping: UrlMapping, now: Optional[datetime] = None) -> None:
        if not self.enabled:
            return
        ttl_ms = self.ttl_ms(mapping, now)
        if ttl_ms <= 0:
            return
        try:
            self.client.psetex(self.key(mapping.short_code), ttl_ms, mapping.original_url)
            logger.debug(f"Cached {mapping.short_code} -> {mapping.original_url[:50]} for {ttl_ms}ms")
        except redis.exceptions.RedisError:
            logger.warning(f"Failed to cache {mapping.short_code}, Redis unavailable")

    def invalidate(self, short_code: str) -> None:
        if not self.enabled:
            return
        try:
            self.client.delete(self.key(short_code))
        except redis.exceptions.RedisError:
            # an entry that outlives this is bounded by its TTL
            logger.warning(f"Failed to invalidate {short_code}, Redis unavailable")
