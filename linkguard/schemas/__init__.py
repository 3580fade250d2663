# re-export common schemas for simpler imports
from .URLCreateRequest import URLCreateRequest
from .URLCreateResponse import URLCreateResponse
from .URLInfoResponse import URLInfoResponse
from .PaginatedURLList import PaginatedURLList
from .ErrorResponse import ErrorResponse

__all__ = [
    "URLCreateRequest",
    "URLCreateResponse",
    "URLInfoResponse",
    "PaginatedURLList",
    "ErrorResponse",
]
