"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .image_store import ImageStore, StoredImage

__all__ = ['ImageStore', 'StoredImage']
