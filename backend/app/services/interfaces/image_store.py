"""
Image storage strategy interface.
Allows swapping where image payloads live without touching the catalog services.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StoredImage:
    """
    What gets persisted for one image slot.

    `reference` goes to the slot's text column, `data` to its binary column.
    Backends fill exactly one of them.
    """

    reference: Optional[str] = None
    data: Optional[bytes] = None


class ImageStore(ABC):
    """
    Interface for image storage backends.

    Implementations:
    - InlineImageStore: the client-supplied reference is stored as-is
    - FileImageStore: decoded bytes written to a uniquely named file
    - BlobImageStore: decoded bytes stored in the row's binary column
    """

    name: str = "abstract"

    @abstractmethod
    async def store(self, payload: Optional[str]) -> Optional[StoredImage]:
        """
        Persist an image payload.

        Args:
            payload: Transport form of the image (data URI or base64), or None

        Returns:
            What to write to the owning row, or None when the payload is
            absent or malformed (the slot is then left unset)
        """
        pass

    @abstractmethod
    async def resolve(self, stored: StoredImage) -> Optional[str]:
        """
        Turn a persisted image back into something a client can display.

        Returns:
            A data URI or retrieval URL, or None when nothing is stored
        """
        pass

    async def discard(self, references: list[str]) -> None:
        """
        Remove images that no row points at any more.

        Backends whose references are not owned storage (inline text, row
        blobs) have nothing to remove.
        """
        return None
