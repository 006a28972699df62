"""Redis storage backend.

ONLY Redis implementation - every (bucket, key) pair is a Redis set stored
under ``<prefix>_<bucket>@<key>``, with ``%`` and ``@`` percent-encoded
inside bucket and key.

Batches are MULTI/EXEC pipelines, so a committed batch is applied
atomically by Redis. ``unions`` sends one SUNION per bucket in a single
pipeline round trip.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

import redis.asyncio as redis

from ...config.constants import StorageDefaults
from ...core.exceptions import StorageNotConfiguredError
from ...core.protocols.storage import (
    Batch,
    BatchedUnionsBackend,
    ValuesInput,
    as_value_set,
)

logger = logging.getLogger(__name__)


def _escape(part: str) -> str:
    return part.replace("%", "%25").replace("@", "%40")


class RedisBatch(Batch):
    """Batch backed by a transactional Redis pipeline."""

    def __init__(self, owner: "RedisBackend", pipeline):
        super().__init__(owner)
        self.pipeline = pipeline


class RedisBackend(BatchedUnionsBackend):
    """Redis implementation of the storage contract.

    Args:
        redis_client: ``redis.asyncio.Redis`` instance (injected)
        key_prefix: Prefix for all keys written by this backend
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis],
        key_prefix: str = StorageDefaults.REDIS_KEY_PREFIX,
    ):
        self._redis = redis_client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(
        cls,
        url: str,
        key_prefix: str = StorageDefaults.REDIS_KEY_PREFIX,
        decode_responses: bool = True,
    ) -> "RedisBackend":
        """Create a backend with its own client from a Redis URL."""
        client = redis.from_url(url, decode_responses=decode_responses)
        return cls(client, key_prefix=key_prefix)

    def bucket_key(self, bucket: str, key: str) -> str:
        """Build the Redis key of (bucket, key).

        ``%`` and ``@`` are percent-encoded in both parts, so the ``@`` separator
        is unambiguous: resource ``a@b`` with role ``r`` and resource ``a``
        with role ``b@r`` get distinct keys.
        """
        return f"{self._key_prefix}_{_escape(bucket)}@{_escape(key)}"

    def bucket_keys(self, bucket: str, keys: Iterable[str]) -> List[str]:
        return [self.bucket_key(bucket, key) for key in keys]

    def _get_client(self) -> redis.Redis:
        """Get Redis client (returns the injected client)."""
        if self._redis is None:
            raise StorageNotConfiguredError("Redis client not configured")
        return self._redis

    def begin_batch(self) -> RedisBatch:
        """Open a MULTI/EXEC pipeline. Nothing is sent until commit."""
        return RedisBatch(self, self._get_client().pipeline(transaction=True))

    async def commit_batch(self, batch: Batch) -> None:
        """Execute the batch pipeline."""
        self._claim_batch(batch)
        if not batch.operations:
            return
        try:
            await batch.pipeline.execute()
        except Exception as e:
            logger.error(f"Failed to commit Redis batch of {len(batch)} operations: {e}")
            raise
        logger.debug(f"Committed Redis batch of {len(batch)} operations")

    async def get(self, bucket: str, key: str) -> Set[str]:
        members = await self._get_client().smembers(self.bucket_key(bucket, key))
        return self._decode(members)

    async def union(self, bucket: str, keys: Iterable[str]) -> Set[str]:
        redis_keys = self.bucket_keys(bucket, keys)
        if not redis_keys:
            return set()
        members = await self._get_client().sunion(redis_keys)
        return self._decode(members)

    async def unions(self, buckets: Iterable[str], keys: Iterable[str]) -> Dict[str, Set[str]]:
        buckets = list(buckets)
        keys = list(keys)
        if not buckets:
            return {}
        if not keys:
            return {bucket: set() for bucket in buckets}

        pipe = self._get_client().pipeline(transaction=False)
        for bucket in buckets:
            pipe.sunion(self.bucket_keys(bucket, keys))
        replies = await pipe.execute()

        return {bucket: self._decode(reply) for bucket, reply in zip(buckets, replies)}

    def add(self, batch: Batch, bucket: str, key: str, values: ValuesInput) -> None:
        values = as_value_set(values)
        if not values:
            return
        redis_key = self.bucket_key(bucket, key)
        batch.pipeline.sadd(redis_key, *sorted(values))
        batch.operations.append(("sadd", redis_key))

    def remove(self, batch: Batch, bucket: str, key: str, values: ValuesInput) -> None:
        values = as_value_set(values)
        if not values:
            return
        redis_key = self.bucket_key(bucket, key)
        batch.pipeline.srem(redis_key, *sorted(values))
        batch.operations.append(("srem", redis_key))

    def delete(self, batch: Batch, bucket: str, keys: ValuesInput) -> None:
        redis_keys = self.bucket_keys(bucket, sorted(as_value_set(keys)))
        if not redis_keys:
            return
        batch.pipeline.delete(*redis_keys)
        batch.operations.append(("del", tuple(redis_keys)))

    async def clean(self) -> None:
        """Delete every key under this backend's prefix."""
        client = self._get_client()
        keys = []
        async for key in client.scan_iter(match=f"{self._key_prefix}_*"):
            keys.append(key)

        if keys:
            await client.delete(*keys)
        logger.debug(f"Redis backend cleaned {len(keys)} keys with prefix {self._key_prefix}")

    async def close(self) -> None:
        """Close the Redis client."""
        if self._redis is not None:
            await self._redis.aclose()

    @staticmethod
    def _decode(members) -> Set[str]:
        if not members:
            return set()
        return {
            member.decode("utf-8") if isinstance(member, bytes) else member
            for member in members
        }
