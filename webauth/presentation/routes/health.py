from fastapi import APIRouter
from redis.exceptions import RedisError

from webauth.infrastructure.redis_cache.pool import ping_redis

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz() -> dict:
    try:
        redis_ok = await ping_redis()
    except RedisError:
        redis_ok = False
    return {"status": "ok" if redis_ok else "degraded", "redis": redis_ok}
