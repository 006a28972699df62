"""Exception hierarchy for neo-acl."""

from .base import NeoAclError, ConfigurationError, create_error_response
from .validation import ValidationError, InvalidArgumentError, ReservedKeyError
from .storage import StorageError, StorageNotConfiguredError, BatchStateError
from .authorization import (
    AuthorizationError,
    UnauthenticatedError,
    ForbiddenError,
    AuthorizationCheckError,
)
from .http_mapping import HTTP_STATUS_MAP, get_http_status_code

__all__ = [
    "NeoAclError",
    "ConfigurationError",
    "create_error_response",
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
    "HTTP_STATUS_MAP",
    "get_http_status_code",
]
