"""
Pytest fixtures for test database, client, and image stores.

Each test gets a fresh in-memory SQLite database (override with
TEST_DATABASE_URL to run against PostgreSQL) with the schema created up front
and dropped afterwards.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("IMAGE_BACKEND", "inline")

from datetime import datetime, timezone, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.models import EventTrack, Event, Feedback
from app.services.image_store import BlobImageStore, FileImageStore, InlineImageStore
from app.services.strategy_factory import get_image_store

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# 1x1 transparent PNG
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)
PNG_DATA_URI = f"data:image/png;base64,{PNG_BASE64}"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def inline_store() -> InlineImageStore:
    return InlineImageStore()


@pytest.fixture
def file_store(tmp_path) -> FileImageStore:
    return FileImageStore(tmp_path / "uploads", url_prefix="/uploads")


@pytest.fixture
def blob_store() -> BlobImageStore:
    return BlobImageStore()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, inline_store) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB and image store dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_image_store] = lambda: inline_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_track(db_session: AsyncSession) -> EventTrack:
    track = EventTrack(name="DevConf", description="Developer conference")
    db_session.add(track)
    await db_session.commit()
    await db_session.refresh(track)
    return track


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, test_track: EventTrack) -> Event:
    """An event on the test track with 100 of 100 seats free."""
    start = datetime.now(timezone.utc) + timedelta(days=30)
    event = Event(
        track_id=test_track.id,
        name="Keynote",
        description="Opening keynote",
        speakers=["Ada", "Grace"],
        initial_date=start,
        final_date=start + timedelta(hours=1),
        location="Main Hall",
        capacity=100,
        available_seats=100,
        track_name=test_track.name,
    )
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest_asyncio.fixture
async def sold_out_event(db_session: AsyncSession, test_track: EventTrack) -> Event:
    event = Event(
        track_id=test_track.id,
        name="Workshop",
        speakers=[],
        capacity=20,
        available_seats=0,
        track_name=test_track.name,
    )
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


@pytest_asyncio.fixture
async def test_feedback(db_session: AsyncSession, test_event: Event) -> Feedback:
    feedback = Feedback(user_id="user-1", event_id=test_event.id, stars=5, comment="great")
    db_session.add(feedback)
    await db_session.commit()
    await db_session.refresh(feedback)
    return feedback
