"""
Async engine, session factory and the per-request session dependency.

Each request gets one AsyncSession and therefore one transaction: the whole
operation (including multi-table cascades) commits together or rolls back
together.

Side effects that must only happen once the outcome is known (cache
invalidation, removing image files) are registered on the session with
`on_commit` / `on_rollback` and run by `get_db` after the transaction ends.
"""

from typing import AsyncGenerator, Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.core.exceptions import StorageFailure
from app.core.logging import get_logger
from app.db.base import Base

logger = get_logger(__name__)
settings = get_settings()

Hook = Callable[[], Awaitable[None]]

COMMIT_HOOKS = "after_commit_hooks"
ROLLBACK_HOOKS = "after_rollback_hooks"


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.DEBUG)
    return create_async_engine(
        url,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def on_commit(session: AsyncSession, hook: Hook) -> None:
    """Run `hook` after the session's transaction commits."""
    session.info.setdefault(COMMIT_HOOKS, []).append(hook)


def on_rollback(session: AsyncSession, hook: Hook) -> None:
    """Run `hook` after the session's transaction rolls back."""
    session.info.setdefault(ROLLBACK_HOOKS, []).append(hook)


async def run_hooks(session: AsyncSession, committed: bool) -> None:
    """Run and clear the hooks for the outcome; the other set is dropped."""
    hooks = session.info.pop(COMMIT_HOOKS if committed else ROLLBACK_HOOKS, [])
    session.info.pop(ROLLBACK_HOOKS if committed else COMMIT_HOOKS, None)
    for hook in hooks:
        await hook()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: commit on success, roll back on any failure."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            await run_hooks(session, committed=False)
            logger.error("db_transaction_failed", error=str(e))
            raise StorageFailure("Database operation failed") from e
        except Exception:
            await session.rollback()
            await run_hooks(session, committed=False)
            raise
        await run_hooks(session, committed=True)


async def init_models(bind: AsyncEngine = engine) -> None:
    """Create missing tables. Safe to run on every startup."""
    import app.models  # noqa: F401 - register mappers on Base.metadata

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("schema_initialized", tables=sorted(Base.metadata.tables))
