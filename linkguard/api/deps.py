from functools import lru_cache

import httpx
from fastapi import Depends, Request

from linkguard.core.config import settings
from linkguard.db.Connection import database
from linkguard.RateLimitHelper import get_client_ip
from linkguard.services.RedisURLCache import RedisURLCache
from linkguard.services.resolver import RedirectResolver
from linkguard.services.safe_browsing import SafeBrowsingClient
from linkguard.services.scheduler import RecheckScheduler
from linkguard.services.validator import Submitter, URLValidator


@lru_cache
def get_http_client() -> httpx.Client:
    return httpx.Client(headers={"User-Agent": f"{settings.SAFE_BROWSING_CLIENT_ID}/{settings.SAFE_BROWSING_CLIENT_VERSION}"})


@lru_cache
def get_validator() -> URLValidator:
    http_client = get_http_client()
    safe_browsing = SafeBrowsingClient(
        api_key=settings.SAFE_BROWSING_API_KEY,
        http_client=http_client,
        endpoint=settings.SAFE_BROWSING_ENDPOINT,
        client_id=settings.SAFE_BROWSING_CLIENT_ID,
        client_version=settings.SAFE_BROWSING_CLIENT_VERSION,
        timeout=settings.SAFE_BROWSING_TIMEOUT,
    )
    return URLValidator(
        http_client=http_client,
        safe_browsing=safe_browsing,
        probe_timeout=settings.PROBE_TIMEOUT,
        max_url_length=settings.MAX_URL_LENGTH,
        risk_score=settings.MALICIOUS_RISK_SCORE,
    )


@lru_cache
def get_url_cache() -> RedisURLCache:
    return RedisURLCache(database.redis_client, ttl=settings.CACHE_TTL, enabled=settings.REDIS_CACHE_ENABLED)


@lru_cache
def get_scheduler() -> RecheckScheduler:
    return RecheckScheduler(database.SessionLocal, get_validator(), get_url_cache())


def get_resolver(cache: RedisURLCache = Depends(get_url_cache)) -> RedirectResolver:
    return RedirectResolver(cache)


def get_submitter(request: Request) -> Submitter:
    return Submitter(
        user_agent=request.headers.get("user-agent"),
        ip_address=get_client_ip(request),
    )
