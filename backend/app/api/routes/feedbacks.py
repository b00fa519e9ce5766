"""
Feedback endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.catalog import MessageResponse
from app.schemas.feedback import FeedbackCreate, FeedbackResponse
from app.schemas.fields import INT32_MAX
from app.services import feedback_service
from app.services.cache_service import invalidate_catalog_on_commit

router = APIRouter(prefix="/feedbacks", tags=["Feedbacks"])


@router.post("/", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def create_feedback_endpoint(feedback_data: FeedbackCreate, db: AsyncSession = Depends(get_db)):
    feedback = await feedback_service.create_feedback(db, feedback_data)
    invalidate_catalog_on_commit(db)
    return feedback


@router.get("/", response_model=list[FeedbackResponse])
async def list_feedbacks_endpoint(
    event_id: Optional[int] = Query(None, le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
):
    return await feedback_service.list_feedbacks(db, event_id=event_id)


@router.get("/{feedback_id}", response_model=FeedbackResponse)
async def get_feedback_endpoint(
    feedback_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
):
    return await feedback_service.get_feedback(db, feedback_id)


@router.delete("/{feedback_id}", response_model=MessageResponse)
async def delete_feedback_endpoint(
    feedback_id: int = Path(..., le=INT32_MAX),
    db: AsyncSession = Depends(get_db),
):
    await feedback_service.delete_feedback(db, feedback_id)
    invalidate_catalog_on_commit(db)
    return MessageResponse(message=f"Feedback {feedback_id} deleted")
