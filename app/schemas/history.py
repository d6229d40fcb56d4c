"""Activity history schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class HistoryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    type: str
    action: str
    description: Optional[str] = None
    user_id: Optional[str] = None
    user_name: str
    user_image: Optional[str] = None
    target_id: Optional[str] = None
    target_title: Optional[str] = None
    created_at: datetime
