"""Configuration for neo-acl.

Settings live in ``neo_acl.config.settings`` and are imported from there
directly, since they depend on the bucket schema entities.
"""

from .constants import (
    WILDCARD,
    RESERVED_KEY,
    MetaKeys,
    DefaultBuckets,
    StorageDefaults,
)
from .logging_config import (
    LoggingConfig,
    LogLevel,
    LogVerbosity,
    LogFormat,
    setup_logging,
    get_logger,
)

__all__ = [
    "WILDCARD",
    "RESERVED_KEY",
    "MetaKeys",
    "DefaultBuckets",
    "StorageDefaults",
    "LoggingConfig",
    "LogLevel",
    "LogVerbosity",
    "LogFormat",
    "setup_logging",
    "get_logger",
]
