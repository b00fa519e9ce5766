"""
Recommended events set. The unique constraint on `event_id` is what makes
adding an event twice a no-op.
"""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint

from app.db.base import Base


class Recommendation(Base):
    __tablename__ = "recommended"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)

    __table_args__ = (
        UniqueConstraint("event_id", name="uq_recommended_event"),
    )

    def __repr__(self) -> str:
        return f"<Recommendation(id={self.id}, event={self.event_id})>"
