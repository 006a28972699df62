"""Storage backend implementations."""

from .memory_backend import SimpleMemoryBackend, MemoryBackend
from .redis_backend import RedisBackend, RedisBatch
from .postgres_backend import PostgresBackend

__all__ = [
    "SimpleMemoryBackend",
    "MemoryBackend",
    "RedisBackend",
    "RedisBatch",
    "PostgresBackend",
]
