import json

from loguru import logger
from redis.asyncio import Redis

from app.settings import CONSOLIDATED_TTL, REDIS_URL

_redis: Redis | None = None
CONSOLIDATED_GENERATION_KEY = "bookings:consolidated:generation"


def get_redis() -> Redis:
    global _redis
    if _redis is None:
        _redis = Redis.from_url(REDIS_URL, decode_responses=True)
    return _redis


def _consolidated_key(generation: int) -> str:
    return f"bookings:consolidated:{generation}"


# Rows are cached under the generation current when the read started.
# A write bumps the generation, so rows built while that write landed are
# stored under a key no later reader looks up.


async def get_consolidated_cache() -> tuple[list | None, int | None]:
    """Return (cached rows or None, generation to cache a fresh build under)."""
    try:
        redis = get_redis()
        generation = int(await redis.get(CONSOLIDATED_GENERATION_KEY) or 0)
        data = await redis.get(_consolidated_key(generation))
        return (json.loads(data) if data else None), generation
    except Exception:
        logger.warning("Redis get failed, skipping consolidated cache", exc_info=True)
        return None, None


async def set_consolidated_cache(rows: list, generation: int | None) -> None:
    if generation is None:
        return
    try:
        await get_redis().setex(
            _consolidated_key(generation), CONSOLIDATED_TTL, json.dumps(rows)
        )
    except Exception:
        logger.warning("Redis set failed, skipping consolidated cache", exc_info=True)


async def invalidate_consolidated_cache() -> None:
    try:
        await get_redis().incr(CONSOLIDATED_GENERATION_KEY)
    except Exception:
        logger.warning("Redis invalidate failed for consolidated cache", exc_info=True)
