"""Neo-ACL - role-based access control for async Python services.

Users hold roles, roles inherit from parent roles, and roles are granted
permissions on resources. State lives behind a pluggable storage backend
(memory, Redis or PostgreSQL).
"""

# Initialize logging configuration on import
from .config.logging_config import setup_logging
setup_logging()

from .__version__ import __version__

from .acl import Acl

from .config.constants import WILDCARD
from .config.settings import AclSettings, get_settings

from .core.entities import AllowRule, BucketNames, RoleAllowRecord
from .core.protocols import Batch, BatchedUnionsBackend, StorageBackend

from .core.exceptions import (
    # Base Exception
    NeoAclError,

    # Common Exceptions
    ConfigurationError,
    ValidationError,
    InvalidArgumentError,
    ReservedKeyError,
    StorageError,
    StorageNotConfiguredError,
    BatchStateError,
    AuthorizationError,
    UnauthenticatedError,
    ForbiddenError,
    AuthorizationCheckError,

    # Utility Functions
    get_http_status_code,
    create_error_response,
)

from .infrastructure.backends import (
    MemoryBackend,
    PostgresBackend,
    RedisBackend,
    SimpleMemoryBackend,
)
from .infrastructure.factory import create_acl, create_backend

__all__ = [
    "__version__",
    "Acl",
    "WILDCARD",
    "AclSettings",
    "get_settings",
    "AllowRule",
    "BucketNames",
    "RoleAllowRecord",
    "Batch",
    "BatchedUnionsBackend",
    "StorageBackend",
    "NeoAclError",
    "ConfigurationError",
    "ValidationError",
    "InvalidArgumentError",
    "ReservedKeyError",
    "StorageError",
    "StorageNotConfiguredError",
    "BatchStateError",
    "AuthorizationError",
    "UnauthenticatedError",
    "ForbiddenError",
    "AuthorizationCheckError",
    "get_http_status_code",
    "create_error_response",
    "MemoryBackend",
    "PostgresBackend",
    "RedisBackend",
    "SimpleMemoryBackend",
    "create_acl",
    "create_backend",
]
