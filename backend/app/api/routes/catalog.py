"""
Full catalog view and maintenance endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.logging import get_logger
from app.db.session import get_db
from app.schemas.catalog import HashResponse, MessageResponse, TrackDetail
from app.services import catalog_service
from app.services.cache_service import (
    get_cached_catalog,
    get_catalog_generation,
    invalidate_catalog_on_commit,
    set_cached_catalog,
)
from app.services.interfaces.image_store import ImageStore
from app.services.strategy_factory import get_image_store

logger = get_logger(__name__)
router = APIRouter(prefix="/catalog", tags=["Catalog"])


@router.get("/", response_model=list[TrackDetail])
async def full_catalog_endpoint(
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    """
    Every track with its events and their feedbacks, images resolved.
    Cached in Redis until the next catalog write.
    """
    # Read before the database so a write landing mid-query retires this entry
    generation = await get_catalog_generation()
    cached = await get_cached_catalog(generation)
    if cached is not None:
        logger.info("catalog_cache_hit", generation=generation)
        return [TrackDetail.model_validate(track) for track in cached]

    catalog = await catalog_service.full_catalog(db, images)
    await set_cached_catalog(generation, [track.model_dump(mode="json") for track in catalog])
    return catalog


@router.delete("/", response_model=MessageResponse)
async def wipe_endpoint(
    db: AsyncSession = Depends(get_db),
    images: ImageStore = Depends(get_image_store),
):
    """Delete every track, event, feedback and recommendation. Test/reset only."""
    if not get_settings().ALLOW_WIPE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Wipe is disabled")
    await catalog_service.wipe(db, images)
    invalidate_catalog_on_commit(db)
    return MessageResponse(message="Catalog wiped")


@router.get("/hash", response_model=HashResponse)
async def generate_hash_endpoint():
    return HashResponse(hash=catalog_service.generate_hash())
