from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
import logging

from linkguard.api.deps import get_resolver, get_scheduler, get_submitter, get_validator
from linkguard.core.config import settings
from linkguard.db.Connection import database
from linkguard.schemas import ErrorResponse, URLCreateRequest, URLCreateResponse
from linkguard.services.resolver import RedirectResolver
from linkguard.services.scheduler import RecheckScheduler
from linkguard.services.shortener import URLService
from linkguard.services.validator import Submitter, URLValidator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/shorten",
    response_model=URLCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def shorten_url_endpoint(
    url_request: URLCreateRequest,
    db: Session = Depends(database.get_db),
    submitter: Submitter = Depends(get_submitter),
    validator: URLValidator = Depends(get_validator),
    scheduler: RecheckScheduler = Depends(get_scheduler),
):
    db_url = URLService.create_short_url(
        db,
        url_request.original_url,
        url_request.intended_live_date,
        url_request.intended_expiry_date,
        submitter,
        validator,
        scheduler,
    )

    logger.info(f"API success: Shortened {db_url.original_url[:50]}... to {db_url.short_code} ({db_url.status})")
    return URLCreateResponse(
        original_url=db_url.original_url,
        short_code=db_url.short_code,
        short_url=f"{settings.BASE_URL}/{db_url.short_code}",
        status=db_url.status,
        created_at=db_url.created_at,
        intended_live_date=db_url.intended_live_date,
        intended_expiry_date=db_url.intended_expiry_date,
    )


@router.get(
    "/{short_code}",
    tags=["redirect"],
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
    responses={404: {"model": ErrorResponse}, 410: {"model": ErrorResponse}},
)
def redirect_to_url_endpoint(
    short_code: str,
    db: Session = Depends(database.get_db),
    resolver: RedirectResolver = Depends(get_resolver),
):
    original_url = resolver.resolve(db, short_code)
    return RedirectResponse(url=original_url, status_code=status.HTTP_302_FOUND)
