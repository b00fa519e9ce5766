"""
Event track service handling CRUD operations and the track cascade.
"""

from typing import Any, Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.metrics import record_cascade, record_write
from app.models.event import Event
from app.models.track import EventTrack
from app.schemas.track import TrackCreate, TrackPatch
from app.services.event_service import delete_event_rows
from app.services.interfaces.image_store import ImageStore
from app.services.patching import apply_patch, image_columns, patch_image_columns, release_images, require_changes

logger = get_logger(__name__)

IMAGE_SLOTS = ("cover_image", "overlay_image")


async def create_track(db: AsyncSession, track_data: TrackCreate, images: ImageStore) -> EventTrack:
    if track_data.name is None or not track_data.name.strip():
        raise ValidationError("Track name is required")

    columns: dict[str, Any] = {}
    for slot in IMAGE_SLOTS:
        columns.update(await image_columns(db, images, slot, getattr(track_data, slot)))

    track = EventTrack(
        name=track_data.name,
        description=track_data.description,
        **columns,
    )
    db.add(track)
    await db.flush()
    await db.refresh(track)

    record_write("track", "create")
    logger.info("track_created", track_id=track.id, name=track.name)
    return track


async def get_track(db: AsyncSession, track_id: int) -> EventTrack:
    result = await db.execute(select(EventTrack).where(EventTrack.id == track_id))
    track = result.scalar_one_or_none()

    if not track:
        raise NotFoundError(f"Event track {track_id} not found")
    return track


async def list_tracks(db: AsyncSession) -> list[EventTrack]:
    result = await db.execute(select(EventTrack).order_by(EventTrack.id))
    return list(result.scalars().all())


async def update_track(db: AsyncSession, track_id: int, patch: TrackPatch, images: ImageStore) -> EventTrack:
    """Apply a partial update; absent fields keep their current value."""
    track = await get_track(db, track_id)
    changes = require_changes(patch)

    if "name" in changes and (changes["name"] is None or not changes["name"].strip()):
        raise ValidationError("Track name cannot be empty")

    changes = await patch_image_columns(db, images, track, changes, IMAGE_SLOTS)
    await apply_patch(db, EventTrack, track_id, changes)
    await db.refresh(track)

    record_write("track", "update")
    logger.info("track_updated", track_id=track_id, fields=sorted(changes))
    return track


async def delete_track(db: AsyncSession, track_id: int, images: Optional[ImageStore] = None) -> dict[str, int]:
    """
    Delete a track with all of its events and their feedbacks.

    Runs in the caller's transaction, so either every level goes or none does.
    Stored images of the removed rows are released after commit.
    """
    track = await get_track(db, track_id)
    if images is not None:
        release_images(db, images, [track.cover_image, track.overlay_image])

    result = await db.execute(select(Event.id).where(Event.track_id == track_id))
    event_ids = list(result.scalars().all())
    counts = await delete_event_rows(db, event_ids, images)

    await db.execute(
        delete(EventTrack)
        .where(EventTrack.id == track_id)
        .execution_options(synchronize_session="fetch")
    )

    record_cascade("event", counts["events"])
    record_write("track", "delete")
    logger.info(
        "track_deleted",
        track_id=track_id,
        events_deleted=counts["events"],
        feedbacks_deleted=counts["feedbacks"],
    )
    return counts
