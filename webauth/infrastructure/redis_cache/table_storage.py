from __future__ import annotations

import asyncio
import logging
import random
import secrets
from typing import AsyncIterator, Callable, Type, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from webauth.domain.errors import (
    ConflictRetryExhausted,
    RecordNotFound,
    StorageUnavailable,
)
from webauth.domain.ports.table_storage import TableEntity, TableStoragePort

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=TableEntity)

_ETAG_FIELD = "_etag"


def _new_etag() -> str:
    return secrets.token_hex(8)


class RedisTableStorage(TableStoragePort[E]):
    """
    Partition/row keyed entity storage on Redis.

    Layout:
      {prefix}{partition}:{row}  -> hash with the entity fields plus _etag
      {prefix}{partition}        -> set of row keys (the partition index)

    Every write touches hash and index inside one MULTI/EXEC. merge() is an
    optimistic compare-and-swap: WATCH the hash, read, transform, EXEC; a
    concurrent write aborts the EXEC and the attempt is retried.
    """

    def __init__(
        self,
        redis: Redis,
        entity_type: Type[E],
        *,
        key_prefix: str = "tbl:",
        page_size: int = 100,
        max_retries: int = 10,
        retry_backoff_seconds: float = 0.005,
    ) -> None:
        self._redis = redis
        self._entity_type = entity_type
        self._prefix = key_prefix
        self._page_size = page_size
        self._max_retries = max_retries
        self._retry_backoff = retry_backoff_seconds

    def _index_key(self, partition_key: str) -> str:
        return f"{self._prefix}{partition_key}"

    def _row_key(self, partition_key: str, row_key: str) -> str:
        return f"{self._prefix}{partition_key}:{row_key}"

    def _decode(self, partition_key: str, row_key: str, stored: dict) -> E:
        fields = dict(stored)
        etag = fields.pop(_ETAG_FIELD, None)
        return self._entity_type.from_fields(partition_key, row_key, fields, etag)

    def _encode(self, entity: E, etag: str) -> dict[str, str]:
        fields = entity.to_fields()
        fields[_ETAG_FIELD] = etag
        return fields

    async def get(self, partition_key: str, row_key: str) -> E | None:
        try:
            stored = await self._redis.hgetall(self._row_key(partition_key, row_key))
        except RedisError as e:
            raise StorageUnavailable(f"get failed: {e}") from e
        if not stored:
            return None
        return self._decode(partition_key, row_key, stored)

    async def scan(
        self, partition_key: str, predicate: Callable[[E], bool] | None = None
    ) -> AsyncIterator[E]:
        index = self._index_key(partition_key)
        seen: set[str] = set()
        cursor = 0
        while True:
            try:
                cursor, members = await self._redis.sscan(
                    index, cursor=cursor, count=self._page_size
                )
                # SSCAN may return a member more than once across pages
                rows = [m for m in members if m not in seen]
                seen.update(rows)
                stored_rows: list[dict] = []
                if rows:
                    pipe = self._redis.pipeline(transaction=False)
                    for row in rows:
                        pipe.hgetall(self._row_key(partition_key, row))
                    stored_rows = await pipe.execute()
            except RedisError as e:
                raise StorageUnavailable(f"scan failed: {e}") from e

            for row, stored in zip(rows, stored_rows):
                # deleted between index read and fetch
                if not stored:
                    continue
                try:
                    entity = self._decode(partition_key, row, stored)
                except (ValueError, TypeError) as e:
                    # one corrupt row must not hide the rest of the partition
                    logger.warning(
                        "skipping undecodable record",
                        extra={"partition": partition_key, "row": row, "error": str(e)},
                    )
                    continue
                if predicate is None or predicate(entity):
                    yield entity

            if int(cursor) == 0:
                break

    async def upsert(self, entity: E) -> E:
        etag = _new_etag()
        key = self._row_key(entity.partition_key, entity.row_key)
        try:
            pipe = self._redis.pipeline(transaction=True)
            pipe.delete(key)
            pipe.hset(key, mapping=self._encode(entity, etag))
            pipe.sadd(self._index_key(entity.partition_key), entity.row_key)
            await pipe.execute()
        except RedisError as e:
            raise StorageUnavailable(f"upsert failed: {e}") from e
        entity.etag = etag
        return entity

    async def merge(
        self, partition_key: str, row_key: str, transform: Callable[[E], E]
    ) -> E:
        key = self._row_key(partition_key, row_key)
        for attempt in range(1, self._max_retries + 1):
            try:
                async with self._redis.pipeline(transaction=True) as pipe:
                    await pipe.watch(key)
                    stored = await pipe.hgetall(key)
                    if not stored:
                        raise RecordNotFound(partition_key, row_key)

                    current = self._decode(partition_key, row_key, stored)
                    updated = transform(current)
                    if updated is current:
                        # nothing to commit
                        return current
                    etag = _new_etag()

                    pipe.multi()
                    pipe.delete(key)
                    pipe.hset(key, mapping=self._encode(updated, etag))
                    await pipe.execute()
            except WatchError:
                logger.debug(
                    "merge conflict; retrying",
                    extra={"partition": partition_key, "row": row_key, "attempt": attempt},
                )
                await asyncio.sleep(random.uniform(0, self._retry_backoff * attempt))
                continue
            except RedisError as e:
                raise StorageUnavailable(f"merge failed: {e}") from e

            updated.etag = etag
            return updated

        logger.warning(
            "merge retry budget exhausted",
            extra={"partition": partition_key, "row": row_key, "attempts": self._max_retries},
        )
        raise ConflictRetryExhausted(partition_key, row_key, self._max_retries)

    async def delete_if_exists(self, partition_key: str, row_key: str) -> bool:
        try:
            pipe = self._redis.pipeline(transaction=True)
            pipe.delete(self._row_key(partition_key, row_key))
            pipe.srem(self._index_key(partition_key), row_key)
            deleted, _ = await pipe.execute()
        except RedisError as e:
            raise StorageUnavailable(f"delete failed: {e}") from e
        return int(deleted) > 0
