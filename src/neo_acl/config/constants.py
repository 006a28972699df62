"""Constants for neo-acl.

This module defines the fixed tokens, reserved names and default storage
layout values shared by the engine and every storage backend.
"""

from typing import Final


# Permission that satisfies any permission check on its resource
WILDCARD: Final[str] = "*"

# Key name rejected by mutation calls; some backend encodings use it as a field name
RESERVED_KEY: Final[str] = "key"


class MetaKeys:
    """Keys of the metadata bucket."""

    ROLES: Final[str] = "roles"
    USERS: Final[str] = "users"


class DefaultBuckets:
    """Default logical bucket names."""

    META: Final[str] = "meta"
    PARENTS: Final[str] = "parents"
    RESOURCES: Final[str] = "resources"
    ROLES: Final[str] = "roles"
    USERS: Final[str] = "users"
    ALLOWS_PREFIX: Final[str] = "allows_"


class StorageDefaults:
    """Default values for the concrete storage backends."""

    REDIS_KEY_PREFIX: Final[str] = "acl"
    POSTGRES_TABLE: Final[str] = "acl_entries"
    DB_POOL_MIN_SIZE: Final[int] = 1
    DB_POOL_MAX_SIZE: Final[int] = 10
