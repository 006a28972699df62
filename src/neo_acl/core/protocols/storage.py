"""
Storage contract for neo-acl.

Every backend stores named sets of strings addressed by ``(bucket, key)``.
Mutations are buffered in a :class:`Batch` and only become visible once
``commit_batch`` returns. Reads never go through a batch.

Backends that can answer a union over several buckets in one round trip
additionally inherit :class:`BatchedUnionsBackend`; the decision engine picks
its batched path from that declaration alone.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Set, Union

from ..exceptions import BatchStateError

ValuesInput = Union[str, Iterable[str]]


def as_value_set(values: ValuesInput) -> Set[str]:
    """Normalize a single string or an iterable of strings to a set."""
    if isinstance(values, str):
        return {values}
    return set(values)


class Batch:
    """Mutation buffer returned by ``begin_batch``.

    ``operations`` holds backend-specific entries in the order they were
    queued. A batch can be committed once, and only by the backend that
    created it.
    """

    def __init__(self, owner: "StorageBackend"):
        self.owner = owner
        self.operations: List[Any] = []
        self.committed = False

    def __len__(self) -> int:
        return len(self.operations)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(backend={self.owner.__class__.__name__}, "
            f"operations={len(self.operations)}, committed={self.committed})"
        )


class StorageBackend(ABC):
    """Bucket-keyed set store consumed by the engine."""

    @property
    def supports_unions(self) -> bool:
        """Whether this backend declares the batched ``unions`` capability."""
        return isinstance(self, BatchedUnionsBackend)

    def begin_batch(self) -> Batch:
        """Open a mutation buffer. Does not touch the backing store."""
        return Batch(self)

    @abstractmethod
    async def commit_batch(self, batch: Batch) -> None:
        """Execute every buffered operation.

        Returning normally means every queued operation took effect. On
        failure the batch may have been partially applied.
        """
        ...

    @abstractmethod
    async def get(self, bucket: str, key: str) -> Set[str]:
        """Set stored at (bucket, key); empty set when absent."""
        ...

    @abstractmethod
    async def union(self, bucket: str, keys: Iterable[str]) -> Set[str]:
        """Union of the sets stored at each key of one bucket."""
        ...

    @abstractmethod
    def add(self, batch: Batch, bucket: str, key: str, values: ValuesInput) -> None:
        """Buffer a set-union write of values into (bucket, key)."""
        ...

    @abstractmethod
    def remove(self, batch: Batch, bucket: str, key: str, values: ValuesInput) -> None:
        """Buffer a set-difference write removing values from (bucket, key)."""
        ...

    @abstractmethod
    def delete(self, batch: Batch, bucket: str, keys: ValuesInput) -> None:
        """Buffer deletion of whole keys in a bucket."""
        ...

    @abstractmethod
    async def clean(self) -> None:
        """Wipe all state. Meant for test setup and teardown."""
        ...

    async def close(self) -> None:
        """Release connections held by the backend."""
        return None

    def _claim_batch(self, batch: Batch) -> None:
        """Check a batch can be committed here and mark it committed."""
        if batch.owner is not self:
            raise BatchStateError(
                "Batch was created by another backend",
                details={"backend": self.__class__.__name__},
            )
        if batch.committed:
            raise BatchStateError(
                "Batch has already been committed",
                details={"operations": len(batch.operations)},
            )
        batch.committed = True


class BatchedUnionsBackend(StorageBackend):
    """Capability: per-bucket unions over many buckets in one call."""

    @abstractmethod
    async def unions(self, buckets: Iterable[str], keys: Iterable[str]) -> Dict[str, Set[str]]:
        """Map each bucket to the union of the given keys within it."""
        ...
