import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from linkguard.core.errors import Gone, NotFound
from linkguard.db import repository
from linkguard.db.Models.models import utcnow
from linkguard.services import lifecycle
from linkguard.services.lifecycle import LinkStatus
from linkguard.services.RedisURLCache import RedisURLCache

logger = logging.getLogger(__name__)


class RedirectResolver:
    def __init__(self, cache: Optional[RedisURLCache] = None):
        self.cache = cache

    def resolve(self, db: Session, short_code: str, now: Optional[datetime] = None) -> str:
        """Destination for ``short_code``, or NotFound / Gone.

        Expiry is decided from the clock before the stored status is looked
        at. The destination is returned as stored.
        """
        # entries never outlive the expiry instant, see RedisURLCache.ttl_ms
        if self.cache is not None:
            cached_url = self.cache.get(short_code)
            if cached_url:
                return cached_url

        now = now or utcnow()
        mapping = repository.get_url_by_short_code(db, short_code)
        if mapping is None:
            logger.warning(f"Redirect 404: Short code not found: {short_code}")
            raise NotFound()

        if lifecycle.is_expired(mapping.intended_expiry_date, now):
            logger.info(f"Redirect 410: {short_code} expired at {mapping.intended_expiry_date}")
            raise Gone("This URL has expired.")

        if mapping.status != LinkStatus.LIVE:
            logger.info(f"Redirect 410: {short_code} is {mapping.status}")
            raise Gone()

        if self.cache is not None:
            self.cache.put(mapping, now)
        return mapping.original_url
