"""
Image storage backends.

All three accept the same transport form: either a data URI
(`data:image/png;base64,....`) or bare base64. Inline storage keeps that text
untouched; file and blob storage decode it once at write time. Undecodable
input, or input that is not an image, is logged and treated as "no image",
never raised, so callers can treat an unset image as the normal case.
"""

import asyncio
import base64
import binascii
import mimetypes
import re
import secrets
import time
from pathlib import Path
from typing import Optional

from app.core.exceptions import StorageFailure
from app.core.logging import get_logger
from app.core.metrics import record_image_operation
from app.services.interfaces.image_store import ImageStore, StoredImage

logger = get_logger(__name__)

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w-]+=[\w.-]+)*;base64,(?P<body>.*)$", re.DOTALL)

DEFAULT_MIME = "image/png"

_MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}

# Leading bytes of the formats clients actually upload
_MAGIC = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"<svg", "image/svg+xml"),
    (b"<?xml", "image/svg+xml"),
)

# What the file backend will put on disk. No SVG: files are served from the
# API's own origin and SVG can carry script.
FILE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def decode_payload(payload: str) -> Optional[tuple[bytes, str]]:
    """
    Decode a data URI or bare base64 string.

    Returns:
        (raw bytes, mime type) or None if the payload is not valid base64 or
        declares a non-image type
    """
    mime = None
    body = payload.strip()
    match = _DATA_URI.match(body)
    if match:
        mime = match.group("mime")
        body = match.group("body")
    elif body.startswith("data:"):
        return None

    if mime is not None:
        mime = _MIME_ALIASES.get(mime.lower(), mime.lower())
        if not mime.startswith("image/"):
            return None

    try:
        raw = base64.b64decode("".join(body.split()), validate=True)
    except (binascii.Error, ValueError):
        return None
    if not raw:
        return None
    return raw, mime or sniff_mime(raw)


def detect_mime(raw: bytes) -> Optional[str]:
    """Image type from the leading bytes, or None when unrecognised."""
    for magic, mime in _MAGIC:
        if raw.startswith(magic):
            return mime
    if raw[:4] == b"RIFF" and raw[8:12] == b"WEBP":
        return "image/webp"
    return None


def sniff_mime(raw: bytes) -> str:
    return detect_mime(raw) or DEFAULT_MIME


def to_data_uri(raw: bytes, mime: Optional[str] = None) -> str:
    return f"data:{mime or sniff_mime(raw)};base64,{base64.b64encode(raw).decode('ascii')}"


class InlineImageStore(ImageStore):
    """The reference is the payload; resolution is the identity."""

    name = "inline"

    async def store(self, payload: Optional[str]) -> Optional[StoredImage]:
        if payload is None:
            return None
        record_image_operation(self.name, "store", "ok")
        return StoredImage(reference=payload)

    async def resolve(self, stored: StoredImage) -> Optional[str]:
        return stored.reference


class FileImageStore(ImageStore):
    """
    Decoded bytes go to `<upload_dir>/<time_ns>-<random hex><ext>`.

    The time component keeps names ordered and the random suffix keeps two
    writers in the same nanosecond apart; files are created exclusively so an
    existing name is never overwritten. Only raster images whose bytes match
    their declared type are written, and the extension comes from the bytes.
    """

    name = "file"

    def __init__(self, upload_dir: str | Path, url_prefix: str = "/uploads", delivery: str = "url"):
        if delivery not in ("url", "inline"):
            raise ValueError(f"Unknown image delivery mode: {delivery}")
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.delivery = delivery

    @staticmethod
    def make_filename(mime: str) -> str:
        return f"{time.time_ns()}-{secrets.token_hex(8)}{FILE_EXTENSIONS[mime]}"

    def _write(self, filename: str, raw: bytes) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        with open(self.upload_dir / filename, "xb") as f:
            f.write(raw)

    def _reject(self, payload: str, **details) -> None:
        logger.warning("image_payload_rejected", backend=self.name, length=len(payload), **details)
        record_image_operation(self.name, "store", "rejected")

    async def store(self, payload: Optional[str]) -> Optional[StoredImage]:
        if payload is None:
            return None
        decoded = decode_payload(payload)
        if decoded is None:
            self._reject(payload)
            return None

        raw, declared = decoded
        mime = detect_mime(raw)
        if mime not in FILE_EXTENSIONS or declared != mime:
            self._reject(payload, declared=declared, detected=mime)
            return None

        filename = self.make_filename(mime)
        try:
            await asyncio.to_thread(self._write, filename, raw)
        except OSError as e:
            logger.error("image_write_failed", filename=filename, error=str(e))
            raise StorageFailure(f"Could not store image: {e.strerror or e}") from e

        logger.info("image_stored", backend=self.name, filename=filename, size=len(raw))
        record_image_operation(self.name, "store", "ok")
        return StoredImage(reference=filename)

    def _contained(self, reference: str) -> Optional[Path]:
        # Bare file names only; anything with a directory part is foreign
        if not reference or Path(reference).name != reference:
            return None
        return self.upload_dir / reference

    def path_for(self, reference: str) -> Optional[Path]:
        """Map a stored filename to its path, refusing anything outside the upload dir."""
        candidate = self._contained(reference)
        if candidate is None or not candidate.is_file():
            return None
        return candidate

    async def resolve(self, stored: StoredImage) -> Optional[str]:
        if not stored.reference:
            return None
        path = await asyncio.to_thread(self.path_for, stored.reference)
        if path is None:
            record_image_operation(self.name, "resolve", "empty")
            return None
        if self.delivery == "url":
            return f"{self.url_prefix}/{stored.reference}"

        try:
            raw = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise StorageFailure(f"Could not read image: {e.strerror or e}") from e
        mime = mimetypes.guess_type(stored.reference)[0]
        return to_data_uri(raw, mime)

    def _unlink(self, reference: str) -> bool:
        path = self._contained(reference)
        if path is None or not path.is_file():
            return False
        path.unlink()
        return True

    async def discard(self, references: list[str]) -> None:
        removed = 0
        for reference in references:
            try:
                if await asyncio.to_thread(self._unlink, reference):
                    removed += 1
            except OSError as e:
                # The row is already gone; a leftover file is only wasted space
                logger.warning("image_discard_failed", filename=reference, error=str(e))
        if removed:
            record_image_operation(self.name, "discard", "ok")
            logger.info("images_discarded", backend=self.name, count=removed)


class BlobImageStore(ImageStore):
    """Decoded bytes live in the row's binary column."""

    name = "blob"

    async def store(self, payload: Optional[str]) -> Optional[StoredImage]:
        if payload is None:
            return None
        decoded = decode_payload(payload)
        if decoded is None:
            logger.warning("image_payload_rejected", backend=self.name, length=len(payload))
            record_image_operation(self.name, "store", "rejected")
            return None
        record_image_operation(self.name, "store", "ok")
        return StoredImage(data=decoded[0])

    async def resolve(self, stored: StoredImage) -> Optional[str]:
        if not stored.data:
            return None
        return to_data_uri(stored.data)
