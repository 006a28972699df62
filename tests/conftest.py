"""Pytest configuration and fixtures for neo-acl tests."""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock

from neo_acl import Acl
from neo_acl.core.entities import BucketNames
from neo_acl.infrastructure.backends import MemoryBackend, SimpleMemoryBackend


@pytest.fixture
def buckets():
    """Default bucket names."""
    return BucketNames()


@pytest.fixture
def memory_backend():
    """Memory backend with the batched unions capability."""
    return MemoryBackend()


@pytest.fixture
def simple_backend():
    """Memory backend without the batched unions capability."""
    return SimpleMemoryBackend()


@pytest.fixture(params=["memory", "simple"])
def any_memory_backend(request):
    """Each memory backend in turn."""
    if request.param == "memory":
        return MemoryBackend()
    return SimpleMemoryBackend()


@pytest_asyncio.fixture
async def acl(memory_backend):
    """Acl over a fresh memory backend."""
    engine = Acl(memory_backend)
    yield engine
    await engine.clean()


@pytest_asyncio.fixture
async def any_acl(any_memory_backend):
    """Acl over each memory backend, covering both allowed_permissions paths."""
    engine = Acl(any_memory_backend)
    yield engine
    await engine.clean()


@pytest.fixture
def mock_redis_client():
    """Mock redis.asyncio client with a recording transactional pipeline."""
    client = MagicMock()
    client.smembers = AsyncMock(return_value=set())
    client.sunion = AsyncMock(return_value=set())
    client.delete = AsyncMock()
    client.aclose = AsyncMock()

    def make_pipeline(transaction=True):
        pipeline = MagicMock()
        pipeline.transaction = transaction
        pipeline.execute = AsyncMock(return_value=[])
        return pipeline

    client.pipeline = MagicMock(side_effect=make_pipeline)
    return client


@pytest.fixture
def mock_database():
    """Mock DatabaseManager with a transaction yielding a mock connection."""
    connection = MagicMock()
    connection.executemany = AsyncMock()

    class _Transaction:
        async def __aenter__(self):
            return connection

        async def __aexit__(self, exc_type, exc, tb):
            return False

    database = MagicMock()
    database.connection = connection
    database.transaction = MagicMock(side_effect=lambda: _Transaction())
    database.fetch = AsyncMock(return_value=[])
    database.execute = AsyncMock()
    database.close_pool = AsyncMock()
    return database
