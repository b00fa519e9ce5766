"""
Pydantic schemas for event track request/response validation.

Image fields on requests carry the transport form of the image (a data URI or
bare base64); on responses they carry whatever the configured image store
resolves to (data URI or retrieval URL).
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.schemas.patch import Patch


class TrackCreate(BaseModel):
    # Presence is checked by the service so the failure is a 400, not a 422
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    cover_image: Optional[str] = None
    overlay_image: Optional[str] = None


class TrackPatch(Patch):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    cover_image: Optional[str] = None
    overlay_image: Optional[str] = None


class TrackResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    cover_image: Optional[str]
    overlay_image: Optional[str]
    created_at: Optional[datetime] = None
