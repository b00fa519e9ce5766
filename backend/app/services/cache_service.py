"""
Redis caching service for the full catalog view.

CACHING STRATEGY
================

What we cache:
  - The nested full-catalog response (JSON-serialized)
  - Cache key pattern: "catalog:full:<generation>"

Why:
  - The full catalog is the most expensive read (one query per track and
    per event) and the most frequent one for clients rendering a home page
  - The data changes only on catalog writes

Invalidation strategy:
  - Every committed write (create/update/delete at any level, seat
    adjustment, recommendation add, wipe) bumps "catalog:generation" and
    deletes all "catalog:full:*" keys
  - Readers note the generation before querying the database and store
    their result under that generation. A reader that started before a
    write finishes therefore caches under a generation nobody asks for
    again, instead of re-caching pre-write rows
  - TTL-based expiry as safety net (5 minutes)

Failure policy:
  - Redis is advisory. If it is disabled or unreachable the cache reports a
    miss and the request is served from the database.
"""

import json
from typing import Optional

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation, redis_connection_errors
from app.db.session import on_commit

logger = get_logger(__name__)
settings = get_settings()

GENERATION_KEY = "catalog:generation"
CATALOG_KEY_PREFIX = "catalog:full:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            # Test connection
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except redis.RedisError as e:
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def catalog_key(generation: str) -> str:
    return f"{CATALOG_KEY_PREFIX}{generation}"


async def get_catalog_generation() -> Optional[str]:
    """Current cache generation, or None when caching is unavailable."""
    client = await get_redis()
    if not client:
        return None

    try:
        return await client.get(GENERATION_KEY) or "0"
    except redis.RedisError as e:
        logger.error("cache_generation_error", error=str(e))
        return None


async def get_cached_catalog(generation: Optional[str]) -> Optional[list]:
    client = await get_redis()
    if not client or generation is None:
        return None

    key = catalog_key(generation)
    try:
        data = await client.get(key)
    except redis.RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data:
        logger.debug("cache_hit", key=key)
        return json.loads(data)
    logger.debug("cache_miss", key=key)
    return None


async def set_cached_catalog(generation: Optional[str], data: list) -> None:
    """Cache the catalog built while `generation` was current, with TTL."""
    client = await get_redis()
    if not client or generation is None:
        return

    key = catalog_key(generation)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", hit=False)
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_catalog_cache() -> None:
    """
    Invalidate all cached catalog views.
    Bumps the generation first, then uses SCAN to delete every cached view.
    """
    client = await get_redis()
    if not client:
        return

    try:
        generation = await client.incr(GENERATION_KEY)
        deleted = 0
        async for key in client.scan_iter(match=f"{CATALOG_KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", generation=generation, keys_deleted=deleted)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))


def invalidate_catalog_on_commit(db: AsyncSession) -> None:
    """Invalidate the catalog cache once this session's write has committed."""
    on_commit(db, invalidate_catalog_cache)


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}
