from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime
import logging

from linkguard.core.errors import PersistenceFailure, ShortCodeConflict
from linkguard.db.Models.models import MaliciousLog, ScheduledCheck, UrlMapping
from linkguard.utils.encoding import normalize_short_code

logger = logging.getLogger(__name__)


def get_url_by_short_code(db: Session, short_code: str) -> Optional[UrlMapping]:
    normalized = normalize_short_code(short_code)
    return db.query(UrlMapping).filter(UrlMapping.short_code == normalized).first()

def get_url_by_id(db: Session, mapping_id: int) -> Optional[UrlMapping]:
    return db.get(UrlMapping, mapping_id)

def list_urls(db: Session, skip: int, limit: int) -> Tuple[int, List[UrlMapping]]:
    total = db.query(func.count(UrlMapping.id)).scalar()
    urls = db.query(UrlMapping).order_by(UrlMapping.id).offset(skip).limit(limit).all()
    return total, urls


def _commit_and_refresh(db: Session, obj):
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj
    except IntegrityError:
        db.rollback()
        raise

def create_url_mapping(db: Session, mapping: UrlMapping) -> UrlMapping:
    """Insert a new mapping.

    Raises ShortCodeConflict when the short_code unique index rejects the
    row so the caller can pick another code; any other integrity problem is
    a PersistenceFailure.
    """
    try:
        return _commit_and_refresh(db, mapping)
    except IntegrityError as e:
        error_msg = str(e.orig).lower() if hasattr(e, 'orig') else str(e).lower()
        if "short_code" in error_msg:
            raise ShortCodeConflict(mapping.short_code)
        logger.error(
            "IntegrityError creating UrlMapping short_code=%s original=%s: %s",
            mapping.short_code, mapping.original_url[:50], error_msg
        )
        raise PersistenceFailure()

def update_status(db: Session, mapping_id: int, status: str, last_checked_at: datetime) -> int:
    # single-row update, last write wins
    updated = db.query(UrlMapping).filter(UrlMapping.id == mapping_id).update({
        UrlMapping.status: status,
        UrlMapping.last_checked_at: last_checked_at,
    })
    db.commit()
    return updated


def log_malicious_url(
    db: Session,
    url: str,
    user_agent: Optional[str],
    ip_address: Optional[str],
    risk_score: int,
    details: str,
) -> MaliciousLog:
    entry = MaliciousLog(
        url=url,
        user_agent=(user_agent or "")[:512],
        ip_address=(ip_address or "")[:45],
        risk_score=risk_score,
        details=details,
    )
    return _commit_and_refresh(db, entry)

def count_malicious_logs(db: Session, url: Optional[str] = None) -> int:
    query = db.query(func.count(MaliciousLog.id))
    if url is not None:
        query = query.filter(MaliciousLog.url == url)
    return query.scalar()


def save_scheduled_check(db: Session, mapping_id: int, fire_at: datetime) -> ScheduledCheck:
    check = get_scheduled_check(db, mapping_id)
    if check is None:
        check = ScheduledCheck(url_mapping_id=mapping_id, fire_at=fire_at)
    else:
        check.fire_at = fire_at
    return _commit_and_refresh(db, check)

def get_scheduled_check(db: Session, mapping_id: int) -> Optional[ScheduledCheck]:
    return db.query(ScheduledCheck).filter(ScheduledCheck.url_mapping_id == mapping_id).first()

def list_scheduled_checks(db: Session) -> List[ScheduledCheck]:
    return db.query(ScheduledCheck).order_by(ScheduledCheck.fire_at).all()

def delete_scheduled_check(db: Session, mapping_id: int) -> int:
    deleted = db.query(ScheduledCheck).filter(ScheduledCheck.url_mapping_id == mapping_id).delete()
    db.commit()
    return deleted
