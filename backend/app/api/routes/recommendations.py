"""
Recommended events endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.catalog import MessageResponse, RecommendationCreate
from app.services import recommendation_service
from app.services.cache_service import invalidate_catalog_on_commit

router = APIRouter(prefix="/recommended", tags=["Recommendations"])


@router.post("/", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def add_recommendation_endpoint(data: RecommendationCreate, db: AsyncSession = Depends(get_db)):
    """Add an event to the recommended set. Adding it again changes nothing."""
    added = await recommendation_service.add_recommendation(db, data.event_id)
    if added:
        invalidate_catalog_on_commit(db)
        return MessageResponse(message=f"Event {data.event_id} recommended")
    return MessageResponse(message=f"Event {data.event_id} already recommended")


@router.get("/", response_model=list[int])
async def list_recommendations_endpoint(db: AsyncSession = Depends(get_db)):
    return await recommendation_service.list_recommendations(db)
