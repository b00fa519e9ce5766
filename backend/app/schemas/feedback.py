"""
Pydantic schemas for feedback request/response validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from app.schemas.fields import Int32


class FeedbackCreate(BaseModel):
    user_id: Optional[str] = None
    event_id: Int32
    # Range 1..5 is checked by the service
    stars: Int32
    comment: Optional[str] = None


class FeedbackResponse(BaseModel):
    id: int
    user_id: Optional[str]
    event_id: int
    stars: int
    comment: Optional[str]
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
