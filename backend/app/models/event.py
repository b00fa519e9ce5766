"""
Event model with seat inventory tracking.

Key design decisions:
- `available_seats` is only changed by the seat ledger's single-statement
  UPDATEs; the CHECK constraint is the final floor at zero
- `track_id` is nullable so an event can exist before it is attached
- `track_name` is a denormalized copy of the track's name, not kept in sync
- `speakers` is an ordered JSON list (portable across PostgreSQL and SQLite)
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, CheckConstraint, JSON, LargeBinary
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    track_id = Column(Integer, ForeignKey("event_tracks.id"), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    long_description = Column(Text, nullable=True)
    speakers = Column(JSON, nullable=False, default=list)
    initial_date = Column(DateTime(timezone=True), nullable=True)
    final_date = Column(DateTime(timezone=True), nullable=True)
    location = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=True)
    available_seats = Column(Integer, nullable=False, default=0)
    cover_image = Column(Text, nullable=True)
    cover_image_data = Column(LargeBinary, nullable=True)
    card_image = Column(Text, nullable=True)
    card_image_data = Column(LargeBinary, nullable=True)
    track_name = Column(String(255), nullable=True)

    track = relationship("EventTrack", back_populates="events")
    feedbacks = relationship("Feedback", back_populates="event", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        CheckConstraint("capacity IS NULL OR capacity >= 0", name="check_capacity_non_negative"),
        Index("ix_events_track_id", "track_id"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, available={self.available_seats}/{self.capacity})>"
