"""
Event service handling CRUD operations.

Deleting events is explicit and ordered: feedbacks and the recommendation
entry go first, then the event rows, all inside the caller's transaction.
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional, Sequence, Union

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.metrics import record_cascade, record_write
from app.models.event import Event
from app.models.feedback import Feedback
from app.models.recommendation import Recommendation
from app.models.track import EventTrack
from app.schemas.event import EventCreate, EventPatch
from app.services.interfaces.image_store import ImageStore
from app.services.patching import apply_patch, image_columns, patch_image_columns, release_images, require_changes

logger = get_logger(__name__)

IMAGE_SLOTS = ("cover_image", "card_image")


def parse_speakers(value: Optional[Union[list[str], str]]) -> list[str]:
    """Accept a list of names or the same list serialized as JSON."""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValidationError(f"speakers is not valid JSON: {e.msg}") from e
    if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
        raise ValidationError("speakers must be a list of strings")
    return value


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _check_dates(initial: Optional[datetime], final: Optional[datetime]) -> None:
    initial, final = _as_utc(initial), _as_utc(final)
    if initial is not None and final is not None and final < initial:
        raise ValidationError("final_date must not be earlier than initial_date")


def _check_name(name: Optional[str]) -> None:
    if name is None or not name.strip():
        raise ValidationError("Event name is required")


async def _get_track_or_invalid(db: AsyncSession, track_id: int) -> EventTrack:
    track = await db.get(EventTrack, track_id)
    if track is None:
        raise ValidationError(f"track_id {track_id} does not reference an existing track")
    return track


async def create_event(db: AsyncSession, event_data: EventCreate, images: ImageStore) -> Event:
    """Create an event. Seats default to full availability."""
    _check_name(event_data.name)
    speakers = parse_speakers(event_data.speakers)
    _check_dates(event_data.initial_date, event_data.final_date)

    if event_data.capacity is not None and event_data.capacity < 0:
        raise ValidationError("capacity must be non-negative")
    available = event_data.available_seats
    if available is None:
        available = event_data.capacity or 0
    if available < 0:
        raise ValidationError("available_seats must be non-negative")
    if event_data.capacity is not None and available > event_data.capacity:
        raise ValidationError("available_seats cannot exceed capacity")

    track_name = event_data.track_name
    if event_data.track_id is not None:
        track = await _get_track_or_invalid(db, event_data.track_id)
        if track_name is None:
            track_name = track.name

    columns: dict[str, Any] = {}
    for slot in IMAGE_SLOTS:
        columns.update(await image_columns(db, images, slot, getattr(event_data, slot)))

    event = Event(
        track_id=event_data.track_id,
        name=event_data.name,
        description=event_data.description,
        long_description=event_data.long_description,
        speakers=speakers,
        initial_date=event_data.initial_date,
        final_date=event_data.final_date,
        location=event_data.location,
        capacity=event_data.capacity,
        available_seats=available,
        track_name=track_name,
        **columns,
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    record_write("event", "create")
    logger.info("event_created", event_id=event.id, track_id=event.track_id, name=event.name, seats=available)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise NotFoundError(f"Event {event_id} not found")
    return event


async def list_events(db: AsyncSession, track_id: Optional[int] = None) -> list[Event]:
    query = select(Event).order_by(Event.id)
    if track_id is not None:
        query = query.where(Event.track_id == track_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def update_event(db: AsyncSession, event_id: int, patch: EventPatch, images: ImageStore) -> Event:
    """
    Apply a partial update. Only the fields present in the patch are written.

    A present, non-null track_id must reference an existing track.
    """
    event = await get_event(db, event_id)
    changes = require_changes(patch)

    if "name" in changes:
        _check_name(changes["name"])
    if "speakers" in changes:
        changes["speakers"] = parse_speakers(changes["speakers"])
    if changes.get("capacity") is not None and changes["capacity"] < 0:
        raise ValidationError("capacity must be non-negative")
    if changes.get("track_id") is not None:
        await _get_track_or_invalid(db, changes["track_id"])
    if "initial_date" in changes or "final_date" in changes:
        _check_dates(
            changes.get("initial_date", event.initial_date),
            changes.get("final_date", event.final_date),
        )

    changes = await patch_image_columns(db, images, event, changes, IMAGE_SLOTS)
    await apply_patch(db, Event, event_id, changes)
    await db.refresh(event)

    record_write("event", "update")
    logger.info("event_updated", event_id=event_id, fields=sorted(changes))
    return event


async def _delete_returning(db: AsyncSession, model: Any, criterion: Any) -> int:
    result = await db.execute(
        delete(model)
        .where(criterion)
        .returning(model.id)
        .execution_options(synchronize_session="fetch")
    )
    return len(result.all())


async def delete_event_rows(
    db: AsyncSession,
    event_ids: Sequence[int],
    images: Optional[ImageStore] = None,
) -> dict[str, int]:
    """Delete events and everything hanging off them, children first."""
    if not event_ids:
        return {"feedbacks": 0, "recommendations": 0, "events": 0}

    if images is not None:
        result = await db.execute(
            select(Event.cover_image, Event.card_image).where(Event.id.in_(event_ids))
        )
        release_images(db, images, [ref for row in result.all() for ref in row])

    counts = {
        "feedbacks": await _delete_returning(db, Feedback, Feedback.event_id.in_(event_ids)),
        "recommendations": await _delete_returning(db, Recommendation, Recommendation.event_id.in_(event_ids)),
        "events": await _delete_returning(db, Event, Event.id.in_(event_ids)),
    }
    record_cascade("feedback", counts["feedbacks"])
    record_cascade("recommendation", counts["recommendations"])
    return counts


async def delete_event(db: AsyncSession, event_id: int, images: Optional[ImageStore] = None) -> dict[str, int]:
    """Delete an event and its feedbacks in the current transaction."""
    await get_event(db, event_id)
    counts = await delete_event_rows(db, [event_id], images)

    record_write("event", "delete")
    logger.info("event_deleted", event_id=event_id, feedbacks_deleted=counts["feedbacks"])
    return counts
