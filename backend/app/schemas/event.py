"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, Field

from app.schemas.feedback import FeedbackResponse
from app.schemas.fields import Int32
from app.schemas.patch import Patch


class EventCreate(BaseModel):
    track_id: Optional[Int32] = None
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    long_description: Optional[str] = None
    # A list, or the same list pre-serialized as a JSON string
    speakers: Optional[Union[list[str], str]] = None
    initial_date: Optional[datetime] = None
    final_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    capacity: Optional[Int32] = None
    available_seats: Optional[Int32] = None
    cover_image: Optional[str] = None
    card_image: Optional[str] = None
    track_name: Optional[str] = Field(None, max_length=255)


class EventPatch(Patch):
    """Seat counts are deliberately absent: only the seat ledger moves them."""

    track_id: Optional[Int32] = None
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    long_description: Optional[str] = None
    speakers: Optional[Union[list[str], str]] = None
    initial_date: Optional[datetime] = None
    final_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    capacity: Optional[Int32] = None
    cover_image: Optional[str] = None
    card_image: Optional[str] = None
    track_name: Optional[str] = Field(None, max_length=255)


class EventResponse(BaseModel):
    id: int
    track_id: Optional[int]
    name: str
    description: Optional[str]
    long_description: Optional[str]
    speakers: list[str]
    initial_date: Optional[datetime]
    final_date: Optional[datetime]
    location: Optional[str]
    capacity: Optional[int]
    available_seats: int
    cover_image: Optional[str]
    card_image: Optional[str]
    track_name: Optional[str]
    created_at: Optional[datetime] = None


class EventDetail(EventResponse):
    feedbacks: list[FeedbackResponse] = []


class SeatCountResponse(BaseModel):
    event_id: int
    available_seats: int
