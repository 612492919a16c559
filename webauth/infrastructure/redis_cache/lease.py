from __future__ import annotations

import asyncio
import logging
import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator

from redis.asyncio import Redis
from redis.exceptions import RedisError

from webauth.domain.errors import LeaseNotAcquired, StorageUnavailable
from webauth.domain.ports.lease import LeasePort

logger = logging.getLogger(__name__)


_LUA_RELEASE = """
-- KEYS[1]: lease key
-- ARGV[1]: token of the holder
if redis.call('GET', KEYS[1]) == ARGV[1] then
  return redis.call('DEL', KEYS[1])
end
return 0
"""


class RedisLease(LeasePort):
    """
    Short-lived lock record: SET NX PX with a random holder token,
    released only by the holder. The TTL frees it if the holder dies.
    """

    def __init__(
        self,
        redis: Redis,
        *,
        key_prefix: str = "lease:",
        ttl_seconds: float = 10,
        wait_seconds: float = 2.0,
        poll_interval: float = 0.02,
    ) -> None:
        self._redis = redis
        self._prefix = key_prefix
        self._ttl_ms = int(ttl_seconds * 1000)
        self._wait = wait_seconds
        self._poll = poll_interval

    def _key(self, name: str) -> str:
        return f"{self._prefix}{name}"

    async def _acquire(self, key: str, token: str) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._wait
        while True:
            try:
                if await self._redis.set(key, token, nx=True, px=self._ttl_ms):
                    return True
            except RedisError as e:
                raise StorageUnavailable(f"lease acquire failed: {e}") from e
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(self._poll)

    @asynccontextmanager
    async def hold(self, name: str) -> AsyncIterator[None]:
        key = self._key(name)
        token = secrets.token_hex(16)
        if not await self._acquire(key, token):
            raise LeaseNotAcquired(f"lease busy: {name}")
        try:
            yield
        finally:
            try:
                await self._redis.eval(_LUA_RELEASE, 1, key, token)
            except RedisError:
                # the TTL reclaims it
                logger.warning("lease release failed", extra={"lease": name})
