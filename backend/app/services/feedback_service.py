"""
Feedback service. Feedback is written against an existing event only.
"""

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.metrics import record_write
from app.models.event import Event
from app.models.feedback import Feedback
from app.schemas.feedback import FeedbackCreate

logger = get_logger(__name__)

MIN_STARS = 1
MAX_STARS = 5


async def create_feedback(db: AsyncSession, feedback_data: FeedbackCreate) -> Feedback:
    if not MIN_STARS <= feedback_data.stars <= MAX_STARS:
        raise ValidationError(f"stars must be between {MIN_STARS} and {MAX_STARS}")

    exists = await db.execute(select(Event.id).where(Event.id == feedback_data.event_id))
    if exists.scalar_one_or_none() is None:
        raise NotFoundError(f"Event {feedback_data.event_id} not found")

    feedback = Feedback(
        user_id=feedback_data.user_id,
        event_id=feedback_data.event_id,
        stars=feedback_data.stars,
        comment=feedback_data.comment,
    )
    db.add(feedback)
    await db.flush()
    await db.refresh(feedback)

    record_write("feedback", "create")
    logger.info("feedback_created", feedback_id=feedback.id, event_id=feedback.event_id, stars=feedback.stars)
    return feedback


async def get_feedback(db: AsyncSession, feedback_id: int) -> Feedback:
    result = await db.execute(select(Feedback).where(Feedback.id == feedback_id))
    feedback = result.scalar_one_or_none()

    if not feedback:
        raise NotFoundError(f"Feedback {feedback_id} not found")
    return feedback


async def list_feedbacks(db: AsyncSession, event_id: int | None = None) -> list[Feedback]:
    query = select(Feedback).order_by(Feedback.id)
    if event_id is not None:
        query = query.where(Feedback.event_id == event_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def delete_feedback(db: AsyncSession, feedback_id: int) -> None:
    await get_feedback(db, feedback_id)
    await db.execute(
        delete(Feedback)
        .where(Feedback.id == feedback_id)
        .execution_options(synchronize_session="fetch")
    )

    record_write("feedback", "delete")
    logger.info("feedback_deleted", feedback_id=feedback_id)
