"""
Tests for the request transaction: commit, rollback, error mapping, hooks,
all-or-nothing cascades and concurrent seat adjustments.

These run the real `get_db` against a file-backed SQLite database so that
separate sessions (and separate connections) see only committed data.
"""

import asyncio
from functools import partial
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.main import app
from app.core.exceptions import NotFoundError, StorageFailure
from app.db import session as session_module
from app.db.base import Base
from app.db.session import get_db, on_commit, on_rollback
from app.models import Event, EventTrack, Feedback
from app.schemas.track import TrackCreate
from app.services import cache_service, event_service, seat_service, track_service
from app.services.strategy_factory import get_image_store
from tests.conftest import PNG_DATA_URI


@pytest_asyncio.fixture
async def file_db(tmp_path, monkeypatch) -> AsyncGenerator[async_sessionmaker, None]:
    """Point `get_db` at a fresh on-disk database."""
    # Concurrent writers queue on the database lock instead of failing fast
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}", connect_args={"timeout": 30}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(session_module, "AsyncSessionLocal", factory)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def live_client(file_db, file_store) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client going through the real session dependency and the file backend."""
    app.dependency_overrides[get_image_store] = lambda: file_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _seed(factory) -> tuple[int, int, int]:
    async with factory() as session:
        track = EventTrack(name="DevConf")
        session.add(track)
        await session.flush()
        event = Event(
            track_id=track.id, name="Keynote", speakers=[], capacity=100, available_seats=100, track_name="DevConf"
        )
        session.add(event)
        await session.flush()
        feedback = Feedback(user_id="user-1", event_id=event.id, stars=4)
        session.add(feedback)
        await session.commit()
        return track.id, event.id, feedback.id


async def _track_names(factory) -> list[str]:
    async with factory() as session:
        return list((await session.execute(select(EventTrack.name))).scalars().all())


def _db_error() -> OperationalError:
    return OperationalError("DELETE FROM events", {}, Exception("database is locked"))


@pytest.mark.asyncio
async def test_get_db_commits_on_success(file_db):
    db = get_db()
    session = await db.__anext__()
    session.add(EventTrack(name="Kept"))

    with pytest.raises(StopAsyncIteration):
        await db.__anext__()

    assert await _track_names(file_db) == ["Kept"]


@pytest.mark.asyncio
async def test_get_db_rolls_back_database_errors_as_storage_failure(file_db):
    db = get_db()
    session = await db.__anext__()
    session.add(EventTrack(name="Lost"))
    await session.flush()

    with pytest.raises(StorageFailure):
        await db.athrow(_db_error())

    assert await _track_names(file_db) == []


@pytest.mark.asyncio
async def test_get_db_rolls_back_and_reraises_domain_errors(file_db):
    db = get_db()
    session = await db.__anext__()
    session.add(EventTrack(name="Lost"))
    await session.flush()

    with pytest.raises(NotFoundError):
        await db.athrow(NotFoundError("Event 7 not found"))

    assert await _track_names(file_db) == []


@pytest.mark.asyncio
async def test_hooks_follow_transaction_outcome(file_db):
    calls = []

    async def note(outcome):
        calls.append(outcome)

    db = get_db()
    session = await db.__anext__()
    on_commit(session, partial(note, "commit"))
    on_rollback(session, partial(note, "rollback"))
    with pytest.raises(StopAsyncIteration):
        await db.__anext__()
    assert calls == ["commit"]

    db = get_db()
    session = await db.__anext__()
    on_commit(session, partial(note, "commit"))
    on_rollback(session, partial(note, "rollback"))
    with pytest.raises(StorageFailure):
        await db.athrow(_db_error())
    assert calls == ["commit", "rollback"]


@pytest.mark.asyncio
async def test_failed_track_cascade_deletes_nothing(file_db, monkeypatch):
    track_id, event_id, feedback_id = await _seed(file_db)

    original = event_service._delete_returning
    deletes = 0

    async def fail_after_feedbacks(db, model, criterion):
        nonlocal deletes
        deletes += 1
        if deletes > 1:
            raise _db_error()
        return await original(db, model, criterion)

    monkeypatch.setattr(event_service, "_delete_returning", fail_after_feedbacks)

    db = get_db()
    session = await db.__anext__()
    with pytest.raises(OperationalError) as exc_info:
        await track_service.delete_track(session, track_id)
    with pytest.raises(StorageFailure):
        await db.athrow(exc_info.value)

    async with file_db() as session:
        assert await session.get(EventTrack, track_id) is not None
        assert await session.get(Event, event_id) is not None
        assert await session.get(Feedback, feedback_id) is not None


@pytest.mark.asyncio
async def test_delete_track_endpoint_commits_whole_cascade(file_db, live_client):
    track_id, event_id, feedback_id = await _seed(file_db)

    response = await live_client.delete(f"/api/v1/event-tracks/{track_id}")
    assert response.status_code == 200

    async with file_db() as session:
        for model in (EventTrack, Event, Feedback):
            count = await session.scalar(select(func.count()).select_from(model))
            assert count == 0


async def _take_seats(factory, event_id: int, takers: int) -> list[int]:
    async def take() -> int:
        async with factory() as session:
            remaining = await seat_service.decrement_seat(session, event_id)
            await session.commit()
            return remaining

    return await asyncio.gather(*(take() for _ in range(takers)))


async def _event_with_seats(factory, seats: int) -> int:
    async with factory() as session:
        event = Event(name="Hot ticket", speakers=[], capacity=seats, available_seats=seats)
        session.add(event)
        await session.commit()
        return event.id


async def _available(factory, event_id: int) -> int:
    async with factory() as session:
        return (await session.get(Event, event_id)).available_seats


@pytest.mark.asyncio
async def test_concurrent_decrements_lose_no_updates(file_db):
    event_id = await _event_with_seats(file_db, 20)

    results = await _take_seats(file_db, event_id, 8)

    assert await _available(file_db, event_id) == 12
    # Every taker saw a distinct count
    assert sorted(results) == list(range(12, 20))


@pytest.mark.asyncio
async def test_concurrent_decrements_floor_at_zero(file_db):
    event_id = await _event_with_seats(file_db, 5)

    results = await _take_seats(file_db, event_id, 12)

    assert await _available(file_db, event_id) == 0
    assert results.count(0) == 12 - 5 + 1


@pytest.mark.asyncio
async def test_cache_invalidated_only_after_commit(file_db, live_client, monkeypatch):
    committed_tracks = []

    async def record_committed_state():
        committed_tracks.append(await _track_names(file_db))

    monkeypatch.setattr(cache_service, "invalidate_catalog_cache", record_committed_state)

    response = await live_client.post("/api/v1/event-tracks/", json={"name": "DevConf"})
    assert response.status_code == 201
    # The write was visible to other connections when the cache was dropped
    assert committed_tracks == [["DevConf"]]

    response = await live_client.post("/api/v1/event-tracks/", json={"description": "no name"})
    assert response.status_code == 400
    assert committed_tracks == [["DevConf"]]


def _filename(url: str) -> str:
    return url.rsplit("/", 1)[1]


@pytest.mark.asyncio
async def test_replaced_and_deleted_images_are_removed(live_client, file_store):
    response = await live_client.post("/api/v1/event-tracks/", json={"name": "Gallery", "cover_image": PNG_DATA_URI})
    track = response.json()
    first = file_store.upload_dir / _filename(track["cover_image"])
    assert first.is_file()

    response = await live_client.patch(f"/api/v1/event-tracks/{track['id']}", json={"cover_image": PNG_DATA_URI})
    second = file_store.upload_dir / _filename(response.json()["cover_image"])
    assert second.is_file()
    assert not first.exists()

    response = await live_client.post(
        "/api/v1/events/", json={"track_id": track["id"], "name": "Opening", "card_image": PNG_DATA_URI}
    )
    card = file_store.upload_dir / _filename(response.json()["card_image"])
    assert card.is_file()

    response = await live_client.delete(f"/api/v1/event-tracks/{track['id']}")
    assert response.status_code == 200
    assert not second.exists()
    assert not card.exists()


@pytest.mark.asyncio
async def test_rolled_back_create_leaves_no_file(file_db, file_store):
    db = get_db()
    session = await db.__anext__()
    track = await track_service.create_track(
        session, TrackCreate(name="Draft", cover_image=PNG_DATA_URI), file_store
    )
    path = file_store.upload_dir / track.cover_image
    assert path.is_file()

    with pytest.raises(StorageFailure):
        await db.athrow(_db_error())

    assert not path.exists()
    assert await _track_names(file_db) == []
