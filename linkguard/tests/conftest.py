import os

# configure before the application modules read settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["REDIS_CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import json

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from linkguard.main import app
from linkguard.api import deps
from linkguard.db.Models.models import Base
from linkguard.db.Connection import database
from linkguard.services.RedisURLCache import RedisURLCache
from linkguard.services.safe_browsing import SafeBrowsingClient
from linkguard.services.scheduler import RecheckScheduler
from linkguard.services.validator import URLValidator


# Create in-memory SQLite database for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

SAFE_BROWSING_ENDPOINT = "https://safebrowsing.test/v4/threatMatches:find"


class FakeWeb:
    """Outbound HTTP for the tests: liveness probes and Safe Browsing lookups.

    ``statuses`` maps a destination URL to the status its HEAD returns (or to
    an exception class to raise); unknown URLs answer 404. ``flagged`` maps a
    URL to the threat type Safe Browsing reports for it.
    """

    def __init__(self):
        self.statuses = {}
        self.flagged = {}
        self.safe_browsing_status = 200
        self.safe_browsing_body = None
        self.safe_browsing_error = None
        self.probes = []
        self.lookups = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if str(request.url).startswith(SAFE_BROWSING_ENDPOINT):
            return self._safe_browsing(request)

        url = str(request.url)
        self.probes.append((request.method, url))
        outcome = self.statuses.get(url, self.statuses.get(url.rstrip("/"), 404))
        if isinstance(outcome, type) and issubclass(outcome, Exception):
            raise outcome("simulated network failure", request=request)
        headers = {"location": "https://elsewhere.example/"} if 300 <= outcome < 400 else {}
        return httpx.Response(outcome, headers=headers)

    def _safe_browsing(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.lookups.append(payload)
        if self.safe_browsing_error is not None:
            raise self.safe_browsing_error("simulated upstream failure", request=request)
        if self.safe_browsing_body is not None:
            return httpx.Response(self.safe_browsing_status, content=self.safe_browsing_body)

        matches = []
        for entry in payload["threatInfo"]["threatEntries"]:
            threat_type = self.flagged.get(entry["url"])
            if threat_type:
                matches.append({
                    "threatType": threat_type,
                    "platformType": "ANY_PLATFORM",
                    "threatEntryType": "URL",
                    "threat": {"url": entry["url"]},
                })
        body = {"matches": matches} if matches else {}
        return httpx.Response(self.safe_browsing_status, json=body)


@pytest.fixture
def fake_web():
    return FakeWeb()


@pytest.fixture
def http_client(fake_web):
    client = httpx.Client(transport=httpx.MockTransport(fake_web.handler))
    yield client
    client.close()


def build_validator(http_client, api_key="test-key"):
    safe_browsing = SafeBrowsingClient(
        api_key=api_key,
        http_client=http_client,
        endpoint=SAFE_BROWSING_ENDPOINT,
        client_id="linkguard-tests",
        client_version="1.0",
        timeout=1.0,
    )
    return URLValidator(http_client=http_client, safe_browsing=safe_browsing, probe_timeout=1.0)


@pytest.fixture
def validator(http_client):
    return build_validator(http_client)


@pytest.fixture
def url_cache():
    return RedisURLCache(client=None, enabled=False)


@pytest.fixture
def scheduler(validator, url_cache):
    scheduler = RecheckScheduler(TestingSessionLocal, validator, url_cache)
    yield scheduler
    scheduler.shutdown()


@pytest.fixture
def db_session():
    """Creates a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session, validator, scheduler, url_cache):
    """Creates a test client with overridden database and service dependencies."""
    def override_get_db():
        # scheduler threads write through their own sessions
        db_session.expire_all()
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database.get_db] = override_get_db
    app.dependency_overrides[deps.get_validator] = lambda: validator
    app.dependency_overrides[deps.get_scheduler] = lambda: scheduler
    app.dependency_overrides[deps.get_url_cache] = lambda: url_cache
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def sample_urls():
    """Provides sample URLs for testing."""
    return [
        "https://example.com/test1",
        "https://google.com/search?q=test",
        "https://github.com/user/repo",
    ]
