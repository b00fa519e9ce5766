from app.models.track import EventTrack
from app.models.event import Event
from app.models.feedback import Feedback
from app.models.recommendation import Recommendation

__all__ = ["EventTrack", "Event", "Feedback", "Recommendation"]
