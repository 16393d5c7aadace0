"""
Redis caching service for ticket listings.

CACHING STRATEGY
================

What we cache:
  - The GET /tickets response, JSON-serialized, under a generation-scoped
    key "tickets:list:{generation}"

Invalidation:
  - On ticket creation (a new row appears)
  - On every committed purchase (an allocation changed)
  - Invalidation INCRs "tickets:gen" instead of deleting the listing
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

A listing reads the generation BEFORE it reads the database and stores its
rows under that generation. A listing that read the database before a
purchase committed therefore writes to a generation nobody reads any more,
and can never republish the old allocation.

Why NOT cache individual tickets:
  - GET /tickets/{id} must show the live allocation
  - The purchase path never reads through the cache; it locks the row

Redis is advisory. Any Redis failure is logged and the caller falls back to
the database.
"""

import json
from typing import Optional

import redis.asyncio as redis

from ticketing.core.config import get_settings
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_cache_operation, redis_connection_errors

logger = get_logger(__name__)

TICKET_LIST_KEY = "tickets:list"
TICKET_GENERATION_KEY = "tickets:gen"

_redis_client: Optional[redis.Redis] = None


def ticket_list_key(generation: int) -> str:
    return f"{TICKET_LIST_KEY}:{generation}"


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client
    settings = get_settings()

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except (redis.RedisError, OSError) as e:
            redis_connection_errors.inc()
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_ticket_generation() -> Optional[int]:
    """Current listing generation, or None when the cache is unavailable."""
    client = await get_redis()
    if not client:
        return None

    try:
        value = await client.get(TICKET_GENERATION_KEY)
    except (redis.RedisError, OSError) as e:
        record_cache_operation("generation", "error")
        logger.error("cache_generation_error", key=TICKET_GENERATION_KEY, error=str(e))
        return None
    return int(value) if value is not None else 0


async def get_cached_tickets(generation: int) -> Optional[list[dict]]:
    client = await get_redis()
    if not client:
        return None

    key = ticket_list_key(generation)
    try:
        data = await client.get(key)
    except (redis.RedisError, OSError) as e:
        record_cache_operation("get", "error")
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    if data is None:
        record_cache_operation("get", "miss")
        return None
    record_cache_operation("get", "hit")
    return json.loads(data)


async def set_cached_tickets(generation: int, tickets: list[dict]) -> None:
    settings = get_settings()
    client = await get_redis()
    if not client:
        return

    key = ticket_list_key(generation)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(tickets))
        record_cache_operation("set", "ok")
    except (redis.RedisError, OSError) as e:
        record_cache_operation("set", "error")
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_ticket_cache() -> None:
    """Move listings to a new generation; older generations expire by TTL."""
    client = await get_redis()
    if not client:
        return

    try:
        generation = await client.incr(TICKET_GENERATION_KEY)
        record_cache_operation("invalidate", "ok")
        logger.debug("cache_invalidated", generation=generation)
    except (redis.RedisError, OSError) as e:
        record_cache_operation("invalidate", "error")
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except (redis.RedisError, OSError) as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
