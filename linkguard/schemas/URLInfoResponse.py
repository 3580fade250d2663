from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

# Response DTOs
class URLInfoResponse(BaseModel):
    # original_url is the Python field, 'url' is the JSON key
    original_url: str = Field(..., alias="url")
    short_code: str
    short_url: str
    # status as served right now (lazy expiry applied)
    status: str
    stored_status: str
    created_at: datetime
    last_checked_at: Optional[datetime] = None
    intended_live_date: Optional[datetime] = None
    intended_expiry_date: Optional[datetime] = None
    check_interval: int
    scheduled_check_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        populate_by_name = True
