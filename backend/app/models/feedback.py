"""
Feedback left on an event. `user_id` is an opaque, unauthenticated string.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin


class Feedback(Base, TimestampMixin):
    __tablename__ = "feedbacks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    stars = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)

    event = relationship("Event", back_populates="feedbacks")

    __table_args__ = (
        CheckConstraint("stars BETWEEN 1 AND 5", name="check_feedback_stars_range"),
    )

    def __repr__(self) -> str:
        return f"<Feedback(id={self.id}, event={self.event_id}, stars={self.stars})>"
