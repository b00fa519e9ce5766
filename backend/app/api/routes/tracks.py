"""
Event track endpoints.
"""

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.catalog import MessageResponse, TrackDetail
from app.schemas.fields import INT32_MAX
from app.schemas.track import TrackCreate, TrackPatch, TrackResponse
from app.services import catalog_service, track_service
from app.services.cache_service import invalidate_catalog_on_commit
from app.services.interfaces.image_store import ImageStore
from app.services.strategy_factory import get_image_store

router = APIRouter(prefix="/event-tracks", tags=["Event Tracks"])


@router.post("/", response_model=TrackResponse, status_code=status.HTTP_201_CREATED)
async def create_track_endpoint(
    track_data: TrackCreate,
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    track = await track_service.create_track(db, track_data, images)
    invalidate_catalog_on_commit(db)
    return await catalog_service.track_view(track, images)


@router.get("/", response_model=list[TrackResponse])
async def list_tracks_endpoint(
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    tracks = await track_service.list_tracks(db)
    return [await catalog_service.track_view(t, images) for t in tracks]


@router.get("/{track_id}", response_model=TrackDetail)
async def get_track_endpoint(
    track_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    """A track with its events and their feedbacks."""
    return await catalog_service.track_detail(db, track_id, images)


@router.patch("/{track_id}", response_model=TrackResponse)
async def update_track_endpoint(
    patch: TrackPatch,
    track_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    """Update only the fields present in the body; null clears a field."""
    track = await track_service.update_track(db, track_id, patch, images)
    invalidate_catalog_on_commit(db)
    return await catalog_service.track_view(track, images)


@router.delete("/{track_id}", response_model=MessageResponse)
async def delete_track_endpoint(
    track_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    """Delete a track together with its events and their feedbacks."""
    counts = await track_service.delete_track(db, track_id, images)
    invalidate_catalog_on_commit(db)
    return MessageResponse(
        message=f"Track {track_id} deleted with {counts['events']} events and {counts['feedbacks']} feedbacks"
    )
