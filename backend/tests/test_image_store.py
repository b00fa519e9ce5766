"""
Tests for the image storage backends and their wiring into the API.
"""

import base64
import re

import pytest
from httpx import AsyncClient

from app.main import app
from app.schemas.track import TrackCreate, TrackPatch
from app.services import track_service
from app.services.image_store import (
    BlobImageStore,
    FileImageStore,
    InlineImageStore,
    decode_payload,
)
from app.services.interfaces.image_store import StoredImage
from app.services.strategy_factory import build_image_store, get_image_store
from tests.conftest import PNG_BASE64, PNG_DATA_URI

HTML = base64.b64encode(b"<script>alert(document.cookie)</script>").decode()
SVG = base64.b64encode(b"<svg xmlns=\"http://www.w3.org/2000/svg\"><script>alert(1)</script></svg>").decode()

FILENAME = re.compile(r"^\d+-[0-9a-f]{16}\.png$")


def test_decode_payload_variants():
    raw = base64.b64decode(PNG_BASE64)
    assert decode_payload(PNG_DATA_URI) == (raw, "image/png")
    # Bare base64: type sniffed from the bytes
    assert decode_payload(PNG_BASE64) == (raw, "image/png")
    assert decode_payload("not base64 at all!") is None
    assert decode_payload("data:text/plain,hello") is None
    assert decode_payload("data:text/html;base64,PGI+aGk8L2I+") is None
    assert decode_payload("") is None


@pytest.mark.asyncio
async def test_inline_store_is_identity(inline_store):
    stored = await inline_store.store("https://cdn.example.com/a.png")
    assert stored == StoredImage(reference="https://cdn.example.com/a.png")
    assert await inline_store.resolve(stored) == "https://cdn.example.com/a.png"
    assert await inline_store.store(None) is None


@pytest.mark.asyncio
async def test_file_store_writes_and_resolves_url(file_store):
    stored = await file_store.store(PNG_DATA_URI)

    assert stored.data is None
    assert FILENAME.match(stored.reference)
    assert (file_store.upload_dir / stored.reference).read_bytes() == base64.b64decode(PNG_BASE64)
    assert await file_store.resolve(stored) == f"/uploads/{stored.reference}"


@pytest.mark.asyncio
async def test_file_store_names_never_collide(file_store):
    names = {(await file_store.store(PNG_DATA_URI)).reference for _ in range(20)}
    assert len(names) == 20


@pytest.mark.asyncio
async def test_file_store_inline_delivery(tmp_path):
    store = FileImageStore(tmp_path, delivery="inline")
    stored = await store.store(PNG_BASE64)
    assert await store.resolve(stored) == PNG_DATA_URI


@pytest.mark.asyncio
async def test_file_store_missing_or_foreign_reference(file_store):
    assert await file_store.resolve(StoredImage(reference="123-gone.png")) is None
    assert await file_store.resolve(StoredImage(reference="../conftest.py")) is None
    assert await file_store.resolve(StoredImage()) is None


@pytest.mark.asyncio
async def test_file_store_rejects_malformed_payload(file_store):
    assert await file_store.store("data:image/png;base64,@@@") is None
    assert not file_store.upload_dir.exists() or not any(file_store.upload_dir.iterdir())


def test_file_store_unknown_delivery(tmp_path):
    with pytest.raises(ValueError):
        FileImageStore(tmp_path, delivery="carrier-pigeon")


@pytest.mark.asyncio
async def test_blob_store_round_trip(blob_store):
    stored = await blob_store.store(PNG_DATA_URI)
    assert stored.reference is None
    assert stored.data == base64.b64decode(PNG_BASE64)
    assert await blob_store.resolve(stored) == PNG_DATA_URI

    assert await blob_store.resolve(StoredImage()) is None
    assert await blob_store.store("!!!") is None


def test_build_image_store():
    assert isinstance(build_image_store("inline"), InlineImageStore)
    assert isinstance(build_image_store("file"), FileImageStore)
    assert isinstance(build_image_store("blob"), BlobImageStore)
    with pytest.raises(ValueError):
        build_image_store("s3")


@pytest.mark.asyncio
async def test_patch_with_bad_image_keeps_previous(db_session, file_store):
    track = await track_service.create_track(
        db_session, TrackCreate(name="Photos", cover_image=PNG_DATA_URI), file_store
    )
    original = track.cover_image

    track = await track_service.update_track(
        db_session, track.id, TrackPatch(cover_image="???", description="new"), file_store
    )
    assert track.cover_image == original
    assert track.description == "new"

    track = await track_service.update_track(db_session, track.id, TrackPatch(cover_image=None), file_store)
    assert track.cover_image is None


@pytest.mark.asyncio
async def test_api_with_file_backend(client: AsyncClient, file_store):
    app.dependency_overrides[get_image_store] = lambda: file_store

    response = await client.post(
        "/api/v1/event-tracks/",
        json={"name": "Gallery", "cover_image": PNG_DATA_URI, "overlay_image": "garbage"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["cover_image"].startswith("/uploads/")
    assert data["overlay_image"] is None

    filename = data["cover_image"].rsplit("/", 1)[1]
    assert (file_store.upload_dir / filename).is_file()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        f"data:text/html;base64,{HTML}",
        # Declared as an image, but the bytes are markup
        f"data:image/png;base64,{HTML}",
        f"data:image/svg+xml;base64,{SVG}",
        SVG,
        # Declared type disagrees with the bytes
        f"data:image/gif;base64,{PNG_BASE64}",
    ],
)
async def test_file_store_only_writes_matching_raster_images(file_store, payload):
    assert await file_store.store(payload) is None
    assert not file_store.upload_dir.exists() or not any(file_store.upload_dir.iterdir())


@pytest.mark.asyncio
async def test_file_store_accepts_jpg_alias(file_store):
    jpeg = base64.b64encode(b"\xff\xd8\xff\xe0" + b"\x00" * 16).decode()
    stored = await file_store.store(f"data:image/jpg;base64,{jpeg}")
    assert stored.reference.endswith(".jpg")


@pytest.mark.asyncio
async def test_file_store_discard(file_store):
    stored = await file_store.store(PNG_DATA_URI)
    path = file_store.upload_dir / stored.reference
    outside = file_store.upload_dir.parent / "keep.png"
    outside.write_bytes(b"x")

    await file_store.discard([stored.reference, "../keep.png", "123-gone.png"])

    assert not path.exists()
    assert outside.exists()
    assert await file_store.resolve(stored) is None


@pytest.mark.asyncio
async def test_inline_and_blob_discard_are_noops(inline_store, blob_store):
    await inline_store.discard(["https://cdn.example.com/a.png"])
    await blob_store.discard([])
