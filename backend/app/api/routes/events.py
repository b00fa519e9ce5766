"""
Event endpoints, including the seat ledger.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.catalog import MessageResponse
from app.schemas.event import EventCreate, EventDetail, EventPatch, EventResponse, SeatCountResponse
from app.schemas.fields import INT32_MAX
from app.services import catalog_service, event_service, seat_service
from app.services.cache_service import invalidate_catalog_on_commit
from app.services.interfaces.image_store import ImageStore
from app.services.strategy_factory import get_image_store

router = APIRouter(prefix="/events", tags=["Events"])


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    event = await event_service.create_event(db, event_data, images)
    invalidate_catalog_on_commit(db)
    return await catalog_service.event_view(event, images)


@router.get("/", response_model=list[EventResponse])
async def list_events_endpoint(
    track_id: Optional[int] = Query(None, le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    events = await event_service.list_events(db, track_id=track_id)
    return [await catalog_service.event_view(e, images) for e in events]


@router.get("/{event_id}", response_model=EventDetail)
async def get_event_endpoint(
    event_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    """An event with its feedbacks. Not cached (needs real-time seat counts)."""
    return await catalog_service.event_detail(db, event_id, images)


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    patch: EventPatch,
    event_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    """Update only the fields present in the body. Seat counts are not patchable."""
    event = await event_service.update_event(db, event_id, patch, images)
    invalidate_catalog_on_commit(db)
    return await catalog_service.event_view(event, images)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event_endpoint(
    event_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    counts = await event_service.delete_event(db, event_id, images)
    invalidate_catalog_on_commit(db)
    return MessageResponse(message=f"Event {event_id} deleted with {counts['feedbacks']} feedbacks")


@router.post("/{event_id}/decrement-seat", response_model=SeatCountResponse)
async def decrement_seat_endpoint(
    event_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
):
    """Take one seat. Stays at zero when the event is full."""
    seats = await seat_service.decrement_seat(db, event_id)
    invalidate_catalog_on_commit(db)
    return SeatCountResponse(event_id=event_id, available_seats=seats)


@router.post("/{event_id}/increment-seat", response_model=SeatCountResponse)
async def increment_seat_endpoint(
    event_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
):
    """Release one seat. Never goes past the event's capacity."""
    seats = await seat_service.increment_seat(db, event_id)
    invalidate_catalog_on_commit(db)
    return SeatCountResponse(event_id=event_id, available_seats=seats)
