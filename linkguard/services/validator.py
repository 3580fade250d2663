import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

import httpx
from sqlalchemy.orm import Session

from linkguard.core.errors import InvalidSyntax, NotHttps, UnsafeUrl
from linkguard.db import repository
from linkguard.services.safe_browsing import SafeBrowsingClient

logger = logging.getLogger(__name__)


@dataclass
class Submitter:
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


@dataclass
class ProbeResult:
    url: str
    status_code: Optional[int] = None
    location: Optional[str] = None
    error: Optional[str] = None

    @property
    def live(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

    @property
    def redirected(self) -> bool:
        return self.status_code is not None and 300 <= self.status_code < 400


class URLValidator:
    """Syntax, safety and liveness checks for a submitted destination.

    The checks are independent and run in that order; the first two raise,
    the probe only reports.
    """

    def __init__(
        self,
        http_client: httpx.Client,
        safe_browsing: SafeBrowsingClient,
        probe_timeout: float = 10.0,
        max_url_length: int = 2048,
        risk_score: int = 5,
    ):
        self.http_client = http_client
        self.safe_browsing = safe_browsing
        self.probe_timeout = probe_timeout
        self.max_url_length = max_url_length
        self.risk_score = risk_score

    def check_syntax(self, url: str) -> None:
        if not url or len(url) > self.max_url_length:
            raise InvalidSyntax(f"URL must be between 1 and {self.max_url_length} characters")
        try:
            parts = urlsplit(url)
            # .hostname is None for "https://" and "https://:443"
            host = parts.hostname
            # raises ValueError for a non-numeric or out of range port
            parts.port
        except ValueError:
            raise InvalidSyntax()
        if not parts.scheme or not host:
            raise InvalidSyntax()
        if parts.scheme != "https":
            raise NotHttps()

    def check_safety(self, db: Session, url: str, submitter: Submitter) -> None:
        matches = self.safe_browsing.find_threat_matches(url)
        if not matches:
            return

        threat_type = matches[0].threat_type
        logger.warning("URL flagged as unsafe (%s): %s", threat_type, url[:50])
        repository.log_malicious_url(
            db,
            url=url,
            user_agent=submitter.user_agent,
            ip_address=submitter.ip_address,
            risk_score=self.risk_score,
            details=f"Failed Safe Browsing check: {threat_type}",
        )
        raise UnsafeUrl(threat_type)

    def probe_liveness(self, url: str) -> ProbeResult:
        try:
            response = self.http_client.head(url, timeout=self.probe_timeout, follow_redirects=False)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info("Liveness probe failed for %s: %s", url[:50], e)
            return ProbeResult(url=url, error=str(e) or e.__class__.__name__)

        result = ProbeResult(
            url=url,
            status_code=response.status_code,
            location=response.headers.get("location"),
        )
        if result.redirected:
            logger.info(
                "URL has a redirect chain (status %s -> %s): %s",
                result.status_code, result.location, url[:50],
            )
        return result
