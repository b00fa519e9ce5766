"""
Seat ledger: the only code that moves an event's `available_seats`.

CONCURRENCY STRATEGY: single-statement conditional UPDATE
=========================================================

Problem:
  Two requests adjust the same event at once. Read-then-write from two
  round trips lets one of the writes overwrite the other (lost update).

Solution:
  The new value is computed inside the UPDATE itself and handed back with
  RETURNING:

    UPDATE events
       SET available_seats = CASE WHEN available_seats > 0
                                  THEN available_seats - 1 ELSE 0 END
     WHERE id = :event_id
    RETURNING available_seats

  The row lock taken by the UPDATE serializes concurrent adjustments, and
  there is no window between read and write. No retries are needed, unlike
  version-based optimistic locking.

  Increment is clamped at `capacity` when the event has one, so releasing
  seats can never push availability past what the venue holds. The CHECK
  constraint (available_seats >= 0) remains the last line of defence.
"""

from sqlalchemy import and_, case, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.core.metrics import record_seat_adjustment
from app.models.event import Event

logger = get_logger(__name__)


async def _adjust(db: AsyncSession, event_id: int, new_value, direction: str) -> int:
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(available_seats=new_value)
        .returning(Event.available_seats)
        .execution_options(synchronize_session="fetch")
    )
    seats = result.scalar_one_or_none()
    if seats is None:
        raise NotFoundError(f"Event {event_id} not found")

    record_seat_adjustment(direction)
    logger.info("seat_adjusted", event_id=event_id, direction=direction, available_seats=seats)
    return seats


async def decrement_seat(db: AsyncSession, event_id: int) -> int:
    """Take one seat; floors at zero."""
    new_value = case(
        (Event.available_seats > 0, Event.available_seats - 1),
        else_=0,
    )
    return await _adjust(db, event_id, new_value, "decrement")


async def increment_seat(db: AsyncSession, event_id: int) -> int:
    """Release one seat; never exceeds capacity when capacity is set."""
    new_value = case(
        (
            and_(Event.capacity.is_not(None), Event.available_seats >= Event.capacity),
            Event.available_seats,
        ),
        else_=Event.available_seats + 1,
    )
    return await _adjust(db, event_id, new_value, "increment")
