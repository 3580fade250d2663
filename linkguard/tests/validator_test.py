import httpx
import pytest

from conftest import build_validator
from linkguard.core.errors import InvalidSyntax, NotHttps, SafetyCheckFailed, SafetyCheckUnavailable, UnsafeUrl
from linkguard.db import repository
from linkguard.services.validator import ProbeResult, Submitter


@pytest.mark.parametrize("url", [
    "https://example.com",
    "https://example.com/path?q=1#frag",
    "HTTPS://Example.com/upper",
    "https://sub.example.co.uk:8443/x",
])
def test_check_syntax_accepts_https(validator, url):
    validator.check_syntax(url)


@pytest.mark.parametrize("url", ["http://example.com", "ftp://example.com", "gopher://example.com/1"])
def test_check_syntax_not_https(validator, url):
    with pytest.raises(NotHttps):
        validator.check_syntax(url)


@pytest.mark.parametrize("url", [
    "",
    "example.com",
    "https://",
    "https://[::1",
    "mailto:someone@example.com",
    "https://example.com:abc/",
    "https://exa_mple..com:99999999999/",
])
def test_check_syntax_invalid(validator, url):
    with pytest.raises(InvalidSyntax):
        validator.check_syntax(url)


def test_safety_check_passes_clean_url(validator, fake_web, db_session):
    validator.check_safety(db_session, "https://example.com/clean", Submitter())
    assert repository.count_malicious_logs(db_session) == 0


def test_safety_check_flags_and_logs(validator, fake_web, db_session):
    url = "https://phish.example/login"
    fake_web.flagged[url] = "SOCIAL_ENGINEERING"

    with pytest.raises(UnsafeUrl) as excinfo:
        validator.check_safety(db_session, url, Submitter(user_agent="ua", ip_address="10.0.0.1"))

    assert excinfo.value.threat_type == "SOCIAL_ENGINEERING"
    assert repository.count_malicious_logs(db_session, url) == 1


def test_safety_check_without_key(http_client, db_session):
    validator = build_validator(http_client, api_key="")
    with pytest.raises(SafetyCheckUnavailable):
        validator.check_safety(db_session, "https://example.com", Submitter())


@pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"matches": [{"platformType": "ANY"}]}'])
def test_safety_check_malformed_response(validator, fake_web, db_session, body):
    fake_web.safe_browsing_body = body
    with pytest.raises(SafetyCheckFailed):
        validator.check_safety(db_session, "https://example.com", Submitter())
    assert repository.count_malicious_logs(db_session) == 0


def test_safety_check_timeout(validator, fake_web, db_session):
    fake_web.safe_browsing_error = httpx.ReadTimeout
    with pytest.raises(SafetyCheckFailed):
        validator.check_safety(db_session, "https://example.com", Submitter())


def test_safety_request_carries_key(fake_web, db_session):
    requests = []

    def spy(request):
        requests.append(request)
        return fake_web.handler(request)

    client = httpx.Client(transport=httpx.MockTransport(spy))
    build_validator(client, api_key="secret").check_safety(db_session, "https://example.com", Submitter())
    assert requests[0].url.params["key"] == "secret"
    assert requests[0].method == "POST"


@pytest.mark.parametrize("status_code,live,redirected", [
    (200, True, False),
    (204, True, False),
    (301, False, True),
    (302, False, True),
    (404, False, False),
    (500, False, False),
])
def test_probe_liveness_statuses(validator, fake_web, status_code, live, redirected):
    fake_web.statuses["https://example.com/probe"] = status_code
    result = validator.probe_liveness("https://example.com/probe")
    assert result.live is live
    assert result.redirected is redirected
    assert result.error is None
    assert fake_web.probes == [("HEAD", "https://example.com/probe")]


def test_probe_liveness_records_redirect_location(validator, fake_web):
    fake_web.statuses["https://example.com/old"] = 301
    result = validator.probe_liveness("https://example.com/old")
    assert result.location == "https://elsewhere.example/"


@pytest.mark.parametrize("exc", [httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout])
def test_probe_liveness_network_failure(validator, fake_web, exc):
    fake_web.statuses["https://example.com/broken"] = exc
    result = validator.probe_liveness("https://example.com/broken")
    assert result.live is False
    assert result.status_code is None
    assert result.error


def test_probe_result_defaults():
    result = ProbeResult(url="https://example.com")
    assert not result.live
    assert not result.redirected


def test_probe_liveness_reports_unusable_url(validator, fake_web):
    result = validator.probe_liveness("https://example.com:abc/")
    assert result.live is False
    assert result.status_code is None
    assert result.error
    assert fake_web.probes == []
