from datetime import datetime
from sqlalchemy.orm import Session
from linkguard.core.config import settings
from linkguard.core.errors import CodeAllocationExhausted, ShortCodeConflict
from linkguard.db.Models.models import UrlMapping, utcnow
from linkguard.db import repository
from linkguard.services import lifecycle
from linkguard.services.lifecycle import LinkStatus
from linkguard.services.scheduler import RecheckScheduler
from linkguard.services.validator import Submitter, URLValidator
from linkguard.utils import encoding
from typing import Optional
import logging


logger = logging.getLogger(__name__)


class URLService:

    @staticmethod
    def allocate_short_code(db: Session, fields: dict, max_attempts: Optional[int] = None) -> UrlMapping:
        """Insert a mapping under a fresh code, retrying on a unique-index conflict."""
        max_attempts = max_attempts or settings.SHORT_CODE_MAX_ATTEMPTS

        for attempt in range(max_attempts):
            mapping = UrlMapping(short_code=encoding.generate_short_code(), **fields)
            try:
                return repository.create_url_mapping(db, mapping)
            except ShortCodeConflict as e:
                logger.info(f"Short code collision '{e.short_code}' on attempt {attempt + 1}/{max_attempts}")

        logger.error(
            f"Failed to allocate a unique short code after {max_attempts} attempts for {fields['original_url'][:50]}"
        )
        raise CodeAllocationExhausted()

    @staticmethod
    def create_short_url(
        db: Session,
        original_url: str,
        intended_live_date: Optional[datetime],
        intended_expiry_date: Optional[datetime],
        submitter: Submitter,
        validator: URLValidator,
        scheduler: RecheckScheduler,
    ) -> UrlMapping:
        now = utcnow()

        # client input first, nothing below runs without it
        validator.check_syntax(original_url)
        lifecycle.check_requested_dates(intended_live_date, intended_expiry_date, now)

        validator.check_safety(db, original_url, submitter)
        probe = validator.probe_liveness(original_url)

        status = lifecycle.initial_status(probe.live, intended_live_date, now)
        mapping = URLService.allocate_short_code(db, dict(
            original_url=original_url,
            created_at=now,
            intended_live_date=intended_live_date,
            intended_expiry_date=intended_expiry_date,
            last_checked_at=now,
            status=status.value,
            check_interval=settings.DEFAULT_CHECK_INTERVAL_HOURS,
        ))

        if status == LinkStatus.PENDING:
            scheduler.enqueue(db, mapping.id, intended_live_date)

        logger.info(
            "Created %s -> %s with status %s (probe status=%s)",
            mapping.short_code, original_url[:50], status.value, probe.status_code,
        )
        return mapping

    @staticmethod
    def get_url_stats(db: Session, short_code: str) -> Optional[UrlMapping]:
        return repository.get_url_by_short_code(db, short_code)
