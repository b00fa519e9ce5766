"""
Nested catalog views and small utility responses.
"""

from pydantic import BaseModel

from app.schemas.event import EventDetail
from app.schemas.fields import Int32
from app.schemas.track import TrackResponse


class TrackDetail(TrackResponse):
    events: list[EventDetail] = []


class RecommendationCreate(BaseModel):
    event_id: Int32


class MessageResponse(BaseModel):
    message: str


class HashResponse(BaseModel):
    hash: str
