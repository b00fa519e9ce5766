"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import tracks, events, feedbacks, recommendations, catalog

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(tracks.router)
api_router.include_router(events.router)
api_router.include_router(feedbacks.router)
api_router.include_router(recommendations.router)
api_router.include_router(catalog.router)
