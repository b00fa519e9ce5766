"""
Catalog aggregation: nested tracks -> events -> feedbacks with images resolved
through the configured image store, plus maintenance helpers.

The traversal is N+1 shaped on purpose (one query per track and per event);
catalogs are small and this keeps each level's ordering explicit. Any failure
while building the tree propagates; there are no partial results.
"""

import secrets
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.models.event import Event
from app.models.feedback import Feedback
from app.models.recommendation import Recommendation
from app.models.track import EventTrack
from app.schemas.catalog import TrackDetail
from app.schemas.event import EventDetail, EventResponse
from app.schemas.feedback import FeedbackResponse
from app.schemas.track import TrackResponse
from app.services import event_service, feedback_service, track_service
from app.services.interfaces.image_store import ImageStore
from app.services.patching import release_images, stored_image

logger = get_logger(__name__)


async def track_view(track: EventTrack, images: ImageStore) -> TrackResponse:
    return TrackResponse(
        id=track.id,
        name=track.name,
        description=track.description,
        cover_image=await images.resolve(stored_image(track, "cover_image")),
        overlay_image=await images.resolve(stored_image(track, "overlay_image")),
        created_at=track.created_at,
    )


async def event_view(event: Event, images: ImageStore) -> EventResponse:
    return EventResponse(
        id=event.id,
        track_id=event.track_id,
        name=event.name,
        description=event.description,
        long_description=event.long_description,
        speakers=event.speakers or [],
        initial_date=event.initial_date,
        final_date=event.final_date,
        location=event.location,
        capacity=event.capacity,
        available_seats=event.available_seats,
        cover_image=await images.resolve(stored_image(event, "cover_image")),
        card_image=await images.resolve(stored_image(event, "card_image")),
        track_name=event.track_name,
        created_at=event.created_at,
    )


async def _event_tree(db: AsyncSession, event: Event, images: ImageStore) -> EventDetail:
    feedbacks = await feedback_service.list_feedbacks(db, event_id=event.id)
    view = await event_view(event, images)
    return EventDetail(
        **view.model_dump(),
        feedbacks=[FeedbackResponse.model_validate(f) for f in feedbacks],
    )


async def _track_tree(db: AsyncSession, track: EventTrack, images: ImageStore) -> TrackDetail:
    events = await event_service.list_events(db, track_id=track.id)
    view = await track_view(track, images)
    return TrackDetail(
        **view.model_dump(),
        events=[await _event_tree(db, event, images) for event in events],
    )


async def full_catalog(db: AsyncSession, images: ImageStore) -> list[TrackDetail]:
    """Every track with its events and every event with its feedbacks."""
    tracks = await track_service.list_tracks(db)
    catalog = [await _track_tree(db, track, images) for track in tracks]
    logger.info("catalog_built", tracks=len(catalog))
    return catalog


async def track_detail(db: AsyncSession, track_id: int, images: ImageStore) -> TrackDetail:
    track = await track_service.get_track(db, track_id)
    return await _track_tree(db, track, images)


async def event_detail(db: AsyncSession, event_id: int, images: ImageStore) -> EventDetail:
    event = await event_service.get_event(db, event_id)
    return await _event_tree(db, event, images)


async def wipe(db: AsyncSession, images: Optional[ImageStore] = None) -> None:
    """Remove every row from all four tables. Irreversible."""
    if images is not None:
        rows = (await db.execute(select(EventTrack.cover_image, EventTrack.overlay_image))).all()
        rows += (await db.execute(select(Event.cover_image, Event.card_image))).all()
        release_images(db, images, [ref for row in rows for ref in row])

    for model in (Recommendation, Feedback, Event, EventTrack):
        await db.execute(delete(model).execution_options(synchronize_session=False))
    db.expunge_all()
    logger.warning("catalog_wiped")


def generate_hash() -> str:
    """32 hex characters of randomness for client-side naming."""
    return secrets.token_hex(16)
