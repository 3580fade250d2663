from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging

from linkguard.api.deps import get_url_cache, get_validator
from linkguard.core.config import settings
from linkguard.core.errors import NotFound
from linkguard.db import repository
from linkguard.db.Connection import database
from linkguard.db.Models.models import UrlMapping, utcnow
from linkguard.schemas import PaginatedURLList, URLInfoResponse
from linkguard.services import lifecycle
from linkguard.services.RedisURLCache import RedisURLCache
from linkguard.services.scheduler import run_recheck
from linkguard.services.shortener import URLService
from linkguard.services.validator import URLValidator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


def to_info(db: Session, mapping: UrlMapping) -> URLInfoResponse:
    check = repository.get_scheduled_check(db, mapping.id)
    return URLInfoResponse(
        original_url=mapping.original_url,
        short_code=mapping.short_code,
        short_url=f"{settings.BASE_URL}/{mapping.short_code}",
        status=lifecycle.effective_status(mapping, utcnow()).value,
        stored_status=mapping.status,
        created_at=mapping.created_at,
        last_checked_at=mapping.last_checked_at,
        intended_live_date=mapping.intended_live_date,
        intended_expiry_date=mapping.intended_expiry_date,
        check_interval=mapping.check_interval,
        scheduled_check_at=check.fire_at if check else None,
    )


def _get_or_404(db: Session, short_code: str) -> UrlMapping:
    db_url = URLService.get_url_stats(db, short_code)
    if db_url is None:
        logger.warning(f"Stats 404: Short code not found: {short_code}")
        raise NotFound()
    return db_url


@router.get("/list", response_model=PaginatedURLList)
def list_urls_endpoint(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(database.get_db)
):
    """
    Paginated listing of all shortened URLs (for admin use).
    """
    logger.info(f"Admin accessed URL list: skip={skip}, limit={limit}")
    total, urls = repository.list_urls(db, skip, limit)
    return PaginatedURLList(
        total=total,
        skip=skip,
        limit=limit,
        urls=[to_info(db, u) for u in urls]
    )


@router.get("/stats/{short_code}", response_model=URLInfoResponse)
def get_url_statistics_endpoint(short_code: str, db: Session = Depends(database.get_db)):
    """Retrieve lifecycle metadata for a short code."""
    return to_info(db, _get_or_404(db, short_code))


@router.post("/recheck/{short_code}", response_model=URLInfoResponse)
def recheck_url_endpoint(
    short_code: str,
    db: Session = Depends(database.get_db),
    validator: URLValidator = Depends(get_validator),
    cache: RedisURLCache = Depends(get_url_cache),
):
    """Probe the destination now and update its status."""
    db_url = _get_or_404(db, short_code)
    new_status = run_recheck(db, db_url, validator, cache)
    logger.info(f"Admin re-check of {short_code}: {new_status.value}")
    db.refresh(db_url)
    return to_info(db, db_url)
