"""Memory storage backends.

ONLY in-memory implementation - bucket storage kept in process memory
for development, testing, and single-instance deployments.

A batch is an ordered list of closures; committing runs them in order
without yielding, so other coroutines never see half a batch.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, Iterable, Set

from ...core.protocols.storage import (
    Batch,
    BatchedUnionsBackend,
    StorageBackend,
    ValuesInput,
    as_value_set,
)

logger = logging.getLogger(__name__)


class SimpleMemoryBackend(StorageBackend):
    """In-memory bucket storage without the batched unions capability."""

    def __init__(self):
        self._buckets: Dict[str, Dict[str, Set[str]]] = defaultdict(dict)

    async def commit_batch(self, batch: Batch) -> None:
        """Apply every queued operation in order."""
        self._claim_batch(batch)
        operation: Callable[[], None]
        for operation in batch.operations:
            operation()

    async def get(self, bucket: str, key: str) -> Set[str]:
        """Get a copy of the set at (bucket, key)."""
        return set(self._buckets.get(bucket, {}).get(key, ()))

    async def union(self, bucket: str, keys: Iterable[str]) -> Set[str]:
        """Union the sets at the given keys of one bucket."""
        return self._union(bucket, keys)

    def add(self, batch: Batch, bucket: str, key: str, values: ValuesInput) -> None:
        values = as_value_set(values)
        if not values:
            return

        def _add() -> None:
            self._buckets[bucket].setdefault(key, set()).update(values)

        batch.operations.append(_add)

    def remove(self, batch: Batch, bucket: str, key: str, values: ValuesInput) -> None:
        values = as_value_set(values)

        def _remove() -> None:
            entries = self._buckets.get(bucket)
            if entries is None or key not in entries:
                return
            entries[key].difference_update(values)
            # An empty set is indistinguishable from an absent key
            if not entries[key]:
                del entries[key]

        batch.operations.append(_remove)

    def delete(self, batch: Batch, bucket: str, keys: ValuesInput) -> None:
        keys = as_value_set(keys)

        def _delete() -> None:
            entries = self._buckets.get(bucket)
            if entries is None:
                return
            for key in keys:
                entries.pop(key, None)

        batch.operations.append(_delete)

    async def clean(self) -> None:
        """Clear all buckets."""
        self._buckets.clear()
        logger.debug("Memory backend cleaned")

    def _union(self, bucket: str, keys: Iterable[str]) -> Set[str]:
        entries = self._buckets.get(bucket)
        result: Set[str] = set()
        if not entries:
            return result
        for key in keys:
            result.update(entries.get(key, ()))
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(buckets={len(self._buckets)})"


class MemoryBackend(SimpleMemoryBackend, BatchedUnionsBackend):
    """In-memory bucket storage with the batched unions capability."""

    async def unions(self, buckets: Iterable[str], keys: Iterable[str]) -> Dict[str, Set[str]]:
        """Union the given keys within each bucket."""
        keys = list(keys)
        return {bucket: self._union(bucket, keys) for bucket in buckets}
