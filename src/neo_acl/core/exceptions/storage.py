"""Storage exceptions for neo-acl.

Only conditions detected by the backends themselves are raised as these
types. Errors from the underlying clients (redis, asyncpg) propagate unchanged.
"""

from .base import NeoAclError


class StorageError(NeoAclError):
    """Base exception for storage backend errors."""
    pass


class StorageNotConfiguredError(StorageError):
    """Raised when a backend is used without a client or pool."""
    pass


class BatchStateError(StorageError):
    """Raised when a batch is committed twice or handed to the wrong backend."""
    pass
