from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

# Response DTOs
class URLCreateResponse(BaseModel):
    original_url: str = Field(..., alias="url")
    short_code: str
    short_url: str
    status: str
    created_at: datetime
    intended_live_date: Optional[datetime] = None
    intended_expiry_date: Optional[datetime] = None

    model_config = {"from_attributes": True, "populate_by_name": True}
