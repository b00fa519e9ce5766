from app.schemas.track import TrackCreate, TrackPatch, TrackResponse
from app.schemas.event import EventCreate, EventPatch, EventResponse, EventDetail, SeatCountResponse
from app.schemas.feedback import FeedbackCreate, FeedbackResponse
from app.schemas.catalog import TrackDetail, RecommendationCreate, MessageResponse, HashResponse

__all__ = [
    "TrackCreate", "TrackPatch", "TrackResponse",
    "EventCreate", "EventPatch", "EventResponse", "EventDetail", "SeatCountResponse",
    "FeedbackCreate", "FeedbackResponse",
    "TrackDetail", "RecommendationCreate", "MessageResponse", "HashResponse",
]
