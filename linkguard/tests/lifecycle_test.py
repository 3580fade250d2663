from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from linkguard.core.errors import InvalidDateRange
from linkguard.services import lifecycle
from linkguard.services.lifecycle import LinkStatus

NOW = datetime(2026, 1, 1, 12, 0, 0)


def test_initial_status_live_when_probe_succeeds():
    assert lifecycle.initial_status(True, None, NOW) == LinkStatus.LIVE
    assert lifecycle.initial_status(True, NOW + timedelta(days=1), NOW) == LinkStatus.LIVE


def test_initial_status_pending_with_future_live_date():
    assert lifecycle.initial_status(False, NOW + timedelta(seconds=1), NOW) == LinkStatus.PENDING


def test_initial_status_inactive_otherwise():
    assert lifecycle.initial_status(False, None, NOW) == LinkStatus.INACTIVE
    assert lifecycle.initial_status(False, NOW, NOW) == LinkStatus.INACTIVE


@pytest.mark.parametrize("current,live,expected", [
    ("pending", True, LinkStatus.LIVE),
    ("pending", False, LinkStatus.INACTIVE),
    ("inactive", True, LinkStatus.LIVE),
    ("inactive", False, LinkStatus.INACTIVE),
    ("live", False, LinkStatus.INACTIVE),
    ("live", True, LinkStatus.LIVE),
])
def test_status_after_probe(current, live, expected):
    assert lifecycle.status_after_probe(current, live, expired=False) == expected


@pytest.mark.parametrize("current", ["pending", "live", "inactive", "expired"])
def test_expired_is_terminal(current):
    assert lifecycle.status_after_probe(current, True, expired=True) == LinkStatus.EXPIRED
    assert lifecycle.status_after_probe("expired", True, expired=False) == LinkStatus.EXPIRED


def test_is_expired_boundary():
    assert not lifecycle.is_expired(None, NOW)
    assert not lifecycle.is_expired(NOW + timedelta(microseconds=1), NOW)
    assert lifecycle.is_expired(NOW, NOW)
    assert lifecycle.is_expired(NOW - timedelta(days=1), NOW)


def test_effective_status_prefers_expiry_over_stored_status():
    mapping = SimpleNamespace(status="live", intended_expiry_date=NOW - timedelta(seconds=1))
    assert lifecycle.effective_status(mapping, NOW) == LinkStatus.EXPIRED

    mapping.intended_expiry_date = NOW + timedelta(seconds=1)
    assert lifecycle.effective_status(mapping, NOW) == LinkStatus.LIVE


def test_requested_dates_accepts_valid_combinations():
    lifecycle.check_requested_dates(None, None, NOW)
    lifecycle.check_requested_dates(NOW + timedelta(hours=1), None, NOW)
    lifecycle.check_requested_dates(None, NOW + timedelta(hours=1), NOW)
    same = NOW + timedelta(hours=1)
    lifecycle.check_requested_dates(same, same, NOW)


@pytest.mark.parametrize("live,expiry", [
    (None, NOW - timedelta(seconds=1)),
    (None, NOW),
    (NOW - timedelta(hours=1), None),
    (NOW + timedelta(days=2), NOW + timedelta(days=1)),
    (NOW + timedelta(days=1), NOW - timedelta(days=1)),
])
def test_requested_dates_rejected(live, expiry):
    with pytest.raises(InvalidDateRange):
        lifecycle.check_requested_dates(live, expiry, NOW)
