# tests/integration/conftest.py
import os
import uuid

import pytest
import pytest_asyncio
from redis.asyncio import Redis
from redis.exceptions import RedisError

from webauth.domain.entities import VerificationCode
from webauth.infrastructure.redis_cache.table_storage import RedisTableStorage


@pytest_asyncio.fixture
async def redis_client():
    url = os.environ.get("REDIS_URL", "redis://redis:6379/0")
    r = Redis.from_url(url, encoding="utf-8", decode_responses=True)
    try:
        await r.ping()
    except (RedisError, OSError):
        await r.aclose()
        pytest.skip(f"redis not reachable at {url}")
    try:
        yield r
    finally:
        await r.aclose()


@pytest.fixture()
def key_prefix() -> str:
    return f"test:{uuid.uuid4().hex}:"


@pytest_asyncio.fixture
async def table(redis_client, key_prefix):
    storage = RedisTableStorage(
        redis_client, VerificationCode, key_prefix=key_prefix, page_size=3
    )
    try:
        yield storage
    finally:
        keys = [k async for k in redis_client.scan_iter(match=f"{key_prefix}*")]
        if keys:
            await redis_client.delete(*keys)
