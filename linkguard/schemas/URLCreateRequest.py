from pydantic import BaseModel, Field, field_validator
from datetime import datetime, timezone
from typing import Optional

# Request DTOs
class URLCreateRequest(BaseModel):
    # original_url is the Python field, 'url' is the JSON key.
    # Kept as a plain string: scheme/host problems are reported as
    # InvalidSyntax / NotHttps by the validator, not as a 422.
    original_url: str = Field(..., alias="url")
    intended_live_date: Optional[datetime] = None
    intended_expiry_date: Optional[datetime] = None

    model_config = {"populate_by_name": True}

    @field_validator('original_url')
    def strip_url(cls, v):
        return v.strip()

    @field_validator('intended_live_date', 'intended_expiry_date')
    def to_naive_utc(cls, v):
        # stored as naive UTC; naive input is taken to be UTC already
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v
