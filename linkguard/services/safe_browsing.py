"""Client for the Google Safe Browsing v4 ``threatMatches:find`` lookup."""
import logging
from typing import List, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from linkguard.core.errors import SafetyCheckFailed, SafetyCheckUnavailable

logger = logging.getLogger(__name__)

THREAT_TYPES = ["MALWARE", "SOCIAL_ENGINEERING"]
PLATFORM_TYPES = ["ANY_PLATFORM"]
THREAT_ENTRY_TYPES = ["URL"]


class ClientInfo(BaseModel):
    client_id: str = Field(..., alias="clientId")
    client_version: str = Field(..., alias="clientVersion")

    model_config = {"populate_by_name": True}


class ThreatEntry(BaseModel):
    url: str


class ThreatInfo(BaseModel):
    threat_types: List[str] = Field(default_factory=lambda: list(THREAT_TYPES), alias="threatTypes")
    platform_types: List[str] = Field(default_factory=lambda: list(PLATFORM_TYPES), alias="platformTypes")
    threat_entry_types: List[str] = Field(default_factory=lambda: list(THREAT_ENTRY_TYPES), alias="threatEntryTypes")
    threat_entries: List[ThreatEntry] = Field(..., alias="threatEntries")

    model_config = {"populate_by_name": True}


class FindThreatMatchesRequest(BaseModel):
    client: ClientInfo
    threat_info: ThreatInfo = Field(..., alias="threatInfo")

    model_config = {"populate_by_name": True}


class ThreatMatch(BaseModel):
    threat_type: str = Field(..., alias="threatType")
    platform_type: Optional[str] = Field(None, alias="platformType")
    threat_entry_type: Optional[str] = Field(None, alias="threatEntryType")
    threat: Optional[ThreatEntry] = None

    model_config = {"populate_by_name": True}


class FindThreatMatchesResponse(BaseModel):
    # the API answers {} when nothing matched
    matches: List[ThreatMatch] = Field(default_factory=list)


class SafeBrowsingClient:
    def __init__(
        self,
        api_key: Optional[str],
        http_client: httpx.Client,
        endpoint: str,
        client_id: str,
        client_version: str,
        timeout: float,
    ):
        self.api_key = api_key
        self.http_client = http_client
        self.endpoint = endpoint
        self.client_id = client_id
        self.client_version = client_version
        self.timeout = timeout

    def build_request(self, url: str) -> FindThreatMatchesRequest:
        return FindThreatMatchesRequest(
            client=ClientInfo(client_id=self.client_id, client_version=self.client_version),
            threat_info=ThreatInfo(threat_entries=[ThreatEntry(url=url)]),
        )

    def find_threat_matches(self, url: str) -> List[ThreatMatch]:
        """Return the matches for ``url``; an empty list means no known threat."""
        if not self.api_key:
            logger.error("Safe Browsing API key is not configured, cannot check %s", url[:50])
            raise SafetyCheckUnavailable()

        payload = self.build_request(url).model_dump(by_alias=True)
        try:
            response = self.http_client.post(
                self.endpoint,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error("Safe Browsing request failed for %s: %s", url[:50], e)
            raise SafetyCheckFailed()

        if response.is_error:
            logger.error(
                "Safe Browsing returned status %s for %s", response.status_code, url[:50]
            )
            raise SafetyCheckFailed()

        try:
            parsed = FindThreatMatchesResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Malformed Safe Browsing response for %s: %s", url[:50], e)
            raise SafetyCheckFailed()

        return parsed.matches
