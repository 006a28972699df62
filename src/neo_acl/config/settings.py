"""
Settings for neo-acl applications.

Provides the pydantic-settings model used to pick and configure a storage
backend from the environment (``ACL_*`` variables or a ``.env`` file).
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.entities.buckets import BucketNames
from .constants import StorageDefaults


class AclSettings(BaseSettings):
    """Configuration for the access control engine and its storage backend."""

    model_config = SettingsConfigDict(
        env_prefix="ACL_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Checked by the backend factory so an unknown name is a ConfigurationError
    backend: str = Field(
        default="memory",
        description="Storage backend used by the engine: memory, redis or postgres",
    )

    # Redis backend
    redis_url: Optional[str] = Field(default=None, description="Redis connection URL")
    redis_decode_responses: bool = Field(default=True)
    key_prefix: str = Field(
        default=StorageDefaults.REDIS_KEY_PREFIX,
        min_length=1,
        description="Prefix of every Redis key written by the backend",
    )

    # PostgreSQL backend
    database_url: Optional[str] = Field(default=None, description="PostgreSQL DSN")
    table_name: str = Field(
        default=StorageDefaults.POSTGRES_TABLE,
        description="Bucket table; must be a plain SQL identifier",
    )
    db_pool_min_size: int = Field(default=StorageDefaults.DB_POOL_MIN_SIZE, ge=1)
    db_pool_max_size: int = Field(default=StorageDefaults.DB_POOL_MAX_SIZE, ge=1)

    buckets: BucketNames = Field(default_factory=BucketNames)


@lru_cache()
def get_settings() -> AclSettings:
    """Get cached settings instance."""
    return AclSettings()
