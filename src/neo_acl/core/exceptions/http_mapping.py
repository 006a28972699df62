"""HTTP status code mapping for exceptions."""

from typing import Dict, Type

from .authorization import (
    AuthorizationCheckError,
    AuthorizationError,
    ForbiddenError,
    UnauthenticatedError,
)
from .base import ConfigurationError, NeoAclError
from .storage import StorageError
from .validation import ValidationError


HTTP_STATUS_MAP: Dict[Type[Exception], int] = {
    # 400 Bad Request
    ValidationError: 400,

    # 401 Unauthorized
    UnauthenticatedError: 401,

    # 403 Forbidden
    ForbiddenError: 403,

    # 500 Internal Server Error
    AuthorizationCheckError: 500,
    AuthorizationError: 500,
    StorageError: 500,
    ConfigurationError: 500,
    NeoAclError: 500,
}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for exception.

    The most specific class in the exception's MRO that has a mapping wins.

    Args:
        exception: The exception instance

    Returns:
        HTTP status code
    """
    for cls in type(exception).__mro__:
        if cls in HTTP_STATUS_MAP:
            return HTTP_STATUS_MAP[cls]
    return 500
