"""
Event track: the top-level grouping of events.

Image slots keep a text reference (inline payload or stored filename) and a
binary column for the blob backend; only one of the pair is populated.
"""

from sqlalchemy import Column, Integer, String, Text, LargeBinary
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class EventTrack(Base, TimestampMixin):
    __tablename__ = "event_tracks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    cover_image = Column(Text, nullable=True)
    cover_image_data = Column(LargeBinary, nullable=True)
    overlay_image = Column(Text, nullable=True)
    overlay_image_data = Column(LargeBinary, nullable=True)

    # Deletion is explicit in the services, children first
    events = relationship("Event", back_populates="track", passive_deletes="all")

    def __repr__(self) -> str:
        return f"<EventTrack(id={self.id}, name={self.name})>"
