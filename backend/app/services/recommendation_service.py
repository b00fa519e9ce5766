"""
Recommended events: a set of event ids with idempotent add.

The unique constraint on `recommended.event_id` does the de-duplication; the
insert is written as INSERT ... ON CONFLICT DO NOTHING so a repeated add is
neither a duplicate row nor an error.
"""

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.core.metrics import record_write
from app.models.event import Event
from app.models.recommendation import Recommendation

logger = get_logger(__name__)

_INSERT_IGNORE = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def add_recommendation(db: AsyncSession, event_id: int) -> bool:
    """
    Add an event to the recommended set.

    Returns:
        True if a row was inserted, False if the event was already recommended
    """
    exists = await db.execute(select(Event.id).where(Event.id == event_id))
    if exists.scalar_one_or_none() is None:
        raise NotFoundError(f"Event {event_id} not found")

    dialect = db.get_bind().dialect.name
    insert = _INSERT_IGNORE.get(dialect)
    if insert is not None:
        result = await db.execute(
            insert(Recommendation)
            .values(event_id=event_id)
            .on_conflict_do_nothing(index_elements=["event_id"])
            .returning(Recommendation.id)
        )
        added = result.scalar_one_or_none() is not None
    else:
        try:
            async with db.begin_nested():
                db.add(Recommendation(event_id=event_id))
            added = True
        except IntegrityError:
            added = False

    if added:
        record_write("recommendation", "create")
    logger.info("recommendation_added", event_id=event_id, already_present=not added)
    return added


async def list_recommendations(db: AsyncSession) -> list[int]:
    """Recommended event ids in insertion order."""
    result = await db.execute(select(Recommendation.event_id).order_by(Recommendation.id))
    return list(result.scalars().all())
