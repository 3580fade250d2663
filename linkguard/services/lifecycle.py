"""Status rules for a short link.

pending  -> submitted, not reachable yet, a live date in the future was given
live     -> redirects are served
inactive -> probed and unreachable, nothing scheduled to change that
expired  -> terminal, derived from intended_expiry_date vs. the clock
"""
import enum
from datetime import datetime
from typing import Optional

from linkguard.core.errors import InvalidDateRange


class LinkStatus(str, enum.Enum):
    PENDING = "pending"
    LIVE = "live"
    INACTIVE = "inactive"
    EXPIRED = "expired"


def is_expired(intended_expiry_date: Optional[datetime], now: datetime) -> bool:
    return intended_expiry_date is not None and now >= intended_expiry_date


def check_requested_dates(
    intended_live_date: Optional[datetime],
    intended_expiry_date: Optional[datetime],
    now: datetime,
) -> None:
    if intended_expiry_date is not None and intended_expiry_date <= now:
        raise InvalidDateRange("Intended expiry date must be in the future.")
    if intended_live_date is not None and intended_live_date <= now:
        raise InvalidDateRange("Intended live date must be in the future.")
    if (
        intended_live_date is not None
        and intended_expiry_date is not None
        and intended_live_date > intended_expiry_date
    ):
        raise InvalidDateRange("Intended live date must not be after the intended expiry date.")


def initial_status(live: bool, intended_live_date: Optional[datetime], now: datetime) -> LinkStatus:
    if live:
        return LinkStatus.LIVE
    if intended_live_date is not None and intended_live_date > now:
        return LinkStatus.PENDING
    return LinkStatus.INACTIVE


def status_after_probe(current: str, live: bool, expired: bool) -> LinkStatus:
    """Status after a re-check, scheduled or manual.

    No further check is ever pending once one has run, so an unreachable
    destination always lands on inactive.
    """
    if expired or current == LinkStatus.EXPIRED:
        return LinkStatus.EXPIRED
    return LinkStatus.LIVE if live else LinkStatus.INACTIVE


def effective_status(mapping, now: datetime) -> LinkStatus:
    if is_expired(mapping.intended_expiry_date, now):
        return LinkStatus.EXPIRED
    return LinkStatus(mapping.status)
