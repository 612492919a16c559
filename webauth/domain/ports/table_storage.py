from __future__ import annotations

from typing import AsyncIterator, Callable, Protocol, TypeVar


class TableEntity(Protocol):
    """Anything that can live in table storage."""

    partition_key: str
    row_key: str
    etag: str | None

    def to_fields(self) -> dict[str, str]:
        """Flat string mapping of the entity's properties."""

    @classmethod
    def from_fields(
        cls,
        partition_key: str,
        row_key: str,
        fields: dict[str, str],
        etag: str | None = None,
    ) -> "TableEntity":
        """Rebuild the entity from the stored mapping."""


E = TypeVar("E", bound=TableEntity)


class TableStoragePort(Protocol[E]):
    async def get(self, partition_key: str, row_key: str) -> E | None:
        """Point lookup. None when absent."""

    def scan(
        self, partition_key: str, predicate: Callable[[E], bool] | None = None
    ) -> AsyncIterator[E]:
        """
        Yield every entity of the partition matching predicate.
        Backend pages are drained before the iterator is exhausted.
        """

    async def upsert(self, entity: E) -> E:
        """Insert or fully replace the entity. Last writer wins."""

    async def merge(
        self, partition_key: str, row_key: str, transform: Callable[[E], E]
    ) -> E:
        """
        Atomic read-modify-write.
        Raises RecordNotFound if absent, ConflictRetryExhausted on sustained contention.
        """

    async def delete_if_exists(self, partition_key: str, row_key: str) -> bool:
        """Delete the entity. True if something was removed."""
