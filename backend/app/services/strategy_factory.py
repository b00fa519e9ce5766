"""
Image store factory.
Configures which image storage backend the catalog uses.
"""

from app.core.config import get_settings
from app.services.interfaces.image_store import ImageStore
from app.services.image_store import BlobImageStore, FileImageStore, InlineImageStore


def build_image_store(backend: str) -> ImageStore:
    """
    Build an image store by name.

    - inline: client references stored verbatim (default)
    - file: decoded files under UPLOAD_DIR, served at UPLOAD_URL_PREFIX
    - blob: decoded bytes in the database row
    """
    settings = get_settings()

    if backend == "inline":
        return InlineImageStore()
    if backend == "file":
        return FileImageStore(
            settings.UPLOAD_DIR,
            url_prefix=settings.UPLOAD_URL_PREFIX,
            delivery=settings.IMAGE_DELIVERY,
        )
    if backend == "blob":
        return BlobImageStore()
    raise ValueError(f"Unknown IMAGE_BACKEND: {backend}")


# Singleton instance
_store: ImageStore | None = None


def get_image_store() -> ImageStore:
    """Get image store singleton (also used as a FastAPI dependency)."""
    global _store
    if _store is None:
        _store = build_image_store(get_settings().IMAGE_BACKEND)
    return _store
