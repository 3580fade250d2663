"""Deferred liveness re-checks for links that were not live at creation.

Each check is persisted as a ``scheduled_checks`` row before its in-process
timer is armed, so a restart can re-arm it through ``recover()``. Timers run
on their own daemon threads with their own DB sessions.
"""
import logging
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from linkguard.db import repository
from linkguard.db.Models.models import UrlMapping, utcnow
from linkguard.services import lifecycle
from linkguard.services.lifecycle import LinkStatus
from linkguard.services.RedisURLCache import RedisURLCache
from linkguard.services.validator import ProbeResult, URLValidator

logger = logging.getLogger(__name__)


def apply_probe(
    db: Session,
    mapping: UrlMapping,
    probe: ProbeResult,
    cache: Optional[RedisURLCache] = None,
    now: Optional[datetime] = None,
) -> LinkStatus:
    now = now or utcnow()
    previous = mapping.status
    expired = lifecycle.is_expired(mapping.intended_expiry_date, now)
    new_status = lifecycle.status_after_probe(previous, probe.live, expired)

    repository.update_status(db, mapping.id, new_status.value, now)
    if new_status != LinkStatus.LIVE and cache is not None:
        cache.invalidate(mapping.short_code)

    if previous != new_status.value:
        logger.info(
            "URL id=%s code=%s status %s -> %s (probe status=%s)",
            mapping.id, mapping.short_code, previous, new_status.value, probe.status_code,
        )
    return new_status


def run_recheck(
    db: Session,
    mapping: UrlMapping,
    validator: URLValidator,
    cache: Optional[RedisURLCache] = None,
) -> LinkStatus:
    """Manual re-check. A network failure counts as unreachable."""
    now = utcnow()
    if lifecycle.is_expired(mapping.intended_expiry_date, now):
        return LinkStatus.EXPIRED
    probe = validator.probe_liveness(mapping.original_url)
    return apply_probe(db, mapping, probe, cache, now)


def run_scheduled_check(
    db: Session,
    mapping_id: int,
    validator: URLValidator,
    cache: Optional[RedisURLCache] = None,
) -> Optional[LinkStatus]:
    """Body of a fired check. Returns the new status, or None when dropped."""
    try:
        mapping = repository.get_url_by_id(db, mapping_id)
        if mapping is None:
            logger.warning("Scheduled check for unknown URL id=%s dropped", mapping_id)
            return None

        now = utcnow()
        if lifecycle.is_expired(mapping.intended_expiry_date, now):
            logger.info("URL id=%s expired before its scheduled check, suppressed", mapping_id)
            return None

        probe = validator.probe_liveness(mapping.original_url)
        if probe.error:
            logger.warning(
                "Scheduled check for URL id=%s failed (%s), dropped without retry",
                mapping_id, probe.error,
            )
            return None

        status = apply_probe(db, mapping, probe, cache, now)
        if status == LinkStatus.LIVE:
            logger.info("URL id=%s is now live.", mapping_id)
        else:
            logger.info("URL id=%s is still not live.", mapping_id)
        return status
    finally:
        repository.delete_scheduled_check(db, mapping_id)


class RecheckScheduler:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        validator: URLValidator,
        cache: Optional[RedisURLCache] = None,
    ):
        self.session_factory = session_factory
        self.validator = validator
        self.cache = cache
        self._timers: Dict[int, threading.Timer] = {}
        self._lock = threading.Lock()

    def enqueue(self, db: Session, mapping_id: int, fire_at: datetime) -> None:
        repository.save_scheduled_check(db, mapping_id, fire_at)
        self._arm(mapping_id, fire_at)
        logger.info("Scheduled liveness check for URL id=%s at %s", mapping_id, fire_at.isoformat())

    def _arm(self, mapping_id: int, fire_at: datetime) -> bool:
        with self._lock:
            if mapping_id in self._timers:
                logger.debug("Check for URL id=%s already armed", mapping_id)
                return False
            delay = max(0.0, (fire_at - utcnow()).total_seconds())
            timer = threading.Timer(delay, self._fire, args=(mapping_id, fire_at))
            timer.daemon = True
            self._timers[mapping_id] = timer
            timer.start()
            return True

    def _fire(self, mapping_id: int, fire_at: datetime) -> None:
        with self._lock:
            self._timers.pop(mapping_id, None)

        if utcnow() < fire_at:
            # woke up early, never probe before the intended live date
            self._arm(mapping_id, fire_at)
            return

        db = self.session_factory()
        try:
            run_scheduled_check(db, mapping_id, self.validator, self.cache)
        except Exception:
            logger.exception("Scheduled check for URL id=%s crashed, dropped", mapping_id)
        finally:
            db.close()

    def recover(self) -> int:
        """Re-arm persisted checks; overdue ones fire right away."""
        db = self.session_factory()
        try:
            checks = repository.list_scheduled_checks(db)
            pending = [(c.url_mapping_id, c.fire_at) for c in checks]
        finally:
            db.close()

        armed = sum(1 for mapping_id, fire_at in pending if self._arm(mapping_id, fire_at))
        logger.info("Recovered %d scheduled liveness checks", armed)
        return armed

    def armed(self) -> List[int]:
        with self._lock:
            return sorted(self._timers)

    def join(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            timers = list(self._timers.values())
        for timer in timers:
            timer.join(timeout)

    def shutdown(self) -> None:
        # persisted rows stay behind for the next recover()
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        if timers:
            logger.info("Cancelled %d in-process checks on shutdown", len(timers))
