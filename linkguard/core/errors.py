"""Error kinds raised by the validation, allocation and redirect paths.

Each error carries the ``kind`` reported to the caller, the HTTP status the
transport layer maps it to, and a caller-safe ``detail``. Server-side kinds
keep a generic detail; the diagnostic context goes to the log instead.
"""
from typing import Optional


class LinkError(Exception):
    kind = "LinkError"
    status_code = 500
    default_detail = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class InvalidSyntax(LinkError):
    kind = "InvalidSyntax"
    status_code = 400
    default_detail = "URL must be absolute with a scheme and host"


class NotHttps(LinkError):
    kind = "NotHttps"
    status_code = 400
    default_detail = "Only HTTPS URLs are allowed"


class InvalidDateRange(LinkError):
    kind = "InvalidDateRange"
    status_code = 400
    default_detail = "Intended live/expiry dates are not valid"


class UnsafeUrl(LinkError):
    kind = "UnsafeUrl"
    status_code = 400
    default_detail = "This URL is potentially unsafe"

    def __init__(self, threat_type: str, detail: Optional[str] = None):
        self.threat_type = threat_type
        super().__init__(detail or f"This URL is potentially unsafe. Threat type: {threat_type}")


class SafetyCheckUnavailable(LinkError):
    kind = "SafetyCheckUnavailable"
    status_code = 503
    default_detail = "URL safety check is unavailable, please retry later"


class SafetyCheckFailed(LinkError):
    kind = "SafetyCheckFailed"
    status_code = 502
    default_detail = "URL safety check failed, please retry later"


class CodeAllocationExhausted(LinkError):
    kind = "CodeAllocationExhausted"
    status_code = 500
    default_detail = "Could not allocate a short code, please retry"


class NotFound(LinkError):
    kind = "NotFound"
    status_code = 404
    default_detail = "URL not found"


class Gone(LinkError):
    kind = "Gone"
    status_code = 410
    default_detail = "This URL is not currently live"


class PersistenceFailure(LinkError):
    kind = "PersistenceFailure"
    status_code = 500
    default_detail = "Storage error, please retry"


class ShortCodeConflict(Exception):
    """Raised by the repository when an insert hits the short_code unique index."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"short_code already taken: {short_code}")
