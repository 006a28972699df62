"""Backend and engine factories.

Builds a storage backend from ``AclSettings``; configuration problems are
reported as ``ConfigurationError`` before any connection is opened.
"""

import logging
from typing import Optional

from ..acl import Acl
from ..config.settings import AclSettings, get_settings
from ..core.exceptions import ConfigurationError
from ..core.protocols.storage import StorageBackend
from ..database.connection import DatabaseManager
from .backends.memory_backend import MemoryBackend
from .backends.postgres_backend import PostgresBackend
from .backends.redis_backend import RedisBackend

logger = logging.getLogger(__name__)


async def create_backend(settings: Optional[AclSettings] = None) -> StorageBackend:
    """Create the storage backend selected by the settings.

    Args:
        settings: Settings to use (defaults to the cached environment settings)

    Returns:
        Ready-to-use storage backend

    Raises:
        ConfigurationError: If the backend name is unknown, its connection URL is
            missing or the table name is not a plain identifier
    """
    settings = settings or get_settings()
    backend_name = settings.backend.lower()

    if backend_name == "memory":
        logger.info("Using in-memory ACL backend")
        return MemoryBackend()

    if backend_name == "redis":
        if not settings.redis_url:
            raise ConfigurationError(
                "ACL_REDIS_URL is required for the redis backend",
                details={"backend": settings.backend},
            )
        logger.info(f"Using Redis ACL backend with prefix {settings.key_prefix}")
        return RedisBackend.from_url(
            settings.redis_url,
            key_prefix=settings.key_prefix,
            decode_responses=settings.redis_decode_responses,
        )

    if backend_name == "postgres":
        if not settings.database_url:
            raise ConfigurationError(
                "ACL_DATABASE_URL is required for the postgres backend",
                details={"backend": settings.backend},
            )
        database = DatabaseManager(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
        backend = PostgresBackend(database, table_name=settings.table_name)
        await backend.ensure_schema()
        logger.info(f"Using PostgreSQL ACL backend on table {settings.table_name}")
        return backend

    raise ConfigurationError(
        f"Unknown ACL backend: {settings.backend}",
        details={"backend": settings.backend},
    )


async def create_acl(settings: Optional[AclSettings] = None) -> Acl:
    """Create an Acl wired to the backend and bucket names from the settings."""
    settings = settings or get_settings()
    backend = await create_backend(settings)
    return Acl(backend, buckets=settings.buckets)
